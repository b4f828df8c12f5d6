import re
from collections.abc import Iterable
from typing import NamedTuple

STATUS = "status"
INSURANCE = "insurance"
PROCEDURE = "procedure"
ORGANIZATION = "organization"
COVERAGE = "coverage"


class Keyword(NamedTuple):
    text: str
    category: str


def _keyword_regex(keyword: str) -> str:
    # Inner spaces match any run of whitespace left by line reconstruction.
    return r"\s+".join(re.escape(word) for word in keyword.split())


class KeywordTable:
    """Keywords sorted longest first, matched as whole words.

    The single alternation pattern tries longer keywords first, so
    "Retorno de Consulta" wins over "Retorno" at the same position. Each
    entry owns one capturing group, so a match maps back to its entry
    without re-deriving the keyword from the matched text.
    """

    def __init__(self, entries: Iterable[tuple[str, str]]):
        self.entries = sorted(
            (Keyword(text, category) for text, category in entries),
            key=lambda k: len(k.text),
            reverse=True,
        )
        alternation = "|".join(
            f"({_keyword_regex(k.text)})" for k in self.entries
        )
        self.pattern = re.compile(
            rf"(?<!\w)(?:{alternation})(?!\w)", re.IGNORECASE
        )

    def keyword_for(self, match: re.Match[str]) -> Keyword:
        return self.entries[match.lastindex - 1]

    def __add__(self, other: "KeywordTable") -> "KeywordTable":
        return KeywordTable(self.entries + other.entries)

    def __len__(self) -> int:
        return len(self.entries)


def strip_keywords(text: str, table: KeywordTable) -> tuple[str, list[Keyword]]:
    """Remove every keyword of ``table`` from ``text``.

    Returns:
        Tuple of (cleaned_text, matches). Matches are table entries, in the
        order they appear in ``text``.
    """
    found = [table.keyword_for(m) for m in table.pattern.finditer(text)]
    if not found:
        return text, found
    return table.pattern.sub(" ", text), found


def contains_keyword(text: str, table: KeywordTable) -> bool:
    return table.pattern.search(text) is not None


def equals_keyword(text: str, table: KeywordTable) -> bool:
    return table.pattern.fullmatch(text.strip()) is not None


def first_of(matches: list[Keyword], category: str) -> str | None:
    for keyword in matches:
        if keyword.category == category:
            return keyword.text
    return None


STATUS_KEYWORDS = KeywordTable(
    (kw, STATUS)
    for kw in (
        "Confirmado",
        "Realizado",
        "Falta",
        "Agendado",
        "Desistencia",
        "Desistência",
        "Cancelado",
        "Atendido",
        "Em Atendimento",
    )
)

INSURANCE_KEYWORDS = KeywordTable(
    (kw, INSURANCE)
    for kw in (
        "Unimed",
        "Particular",
        "Cassi",
        "Iamspe",
        "Bradesco",
        "Sulamerica",
        "SulAmérica",
        "Allianz",
        "Porto Seguro",
        "Amil",
        "Mediservice",
        "Fusex",
        "Apas",
        "Cabesp",
        "Geap",
        "Saude Caixa",
        "Saúde Caixa",
        "Postal Saude",
        "Postal Saúde",
    )
)

PROCEDURE_KEYWORDS = KeywordTable(
    (kw, PROCEDURE)
    for kw in (
        "Consulta",
        "Primeira Consulta",
        "Segunda Consulta",
        "Retorno de Consulta",
        "Retorno",
        "Exame",
        "Procedimento",
        "Cirurgia",
        "Pequena Cirurgia",
        "Avaliação",
        "Avaliacao",
        "Ecografia",
        "Bioimpedancia",
        "Bioimpedância",
        "Teste Cutaneo",
        "Teste Cutâneo",
        "Imunoterapia",
    )
)

# Administrative terms printed in the event and insurance columns.
NOISE_KEYWORDS = KeywordTable(
    [
        ("Centro de Diagnóstico Unimed", ORGANIZATION),
        ("Centro de Diagnostico Unimed", ORGANIZATION),
        ("CDU", ORGANIZATION),
        ("Enfermaria", COVERAGE),
        ("Apartamento", COVERAGE),
        ("Ambulatorial", COVERAGE),
        ("Coparticipação", COVERAGE),
        ("Coparticipacao", COVERAGE),
        ("Intercâmbio", COVERAGE),
        ("Intercambio", COVERAGE),
    ]
)

# Insurance, procedure and administrative terms in one longest-first table.
# Also the junk-term list for continuation lines and final name filtering.
FIELD_KEYWORDS = INSURANCE_KEYWORDS + PROCEDURE_KEYWORDS + NOISE_KEYWORDS
