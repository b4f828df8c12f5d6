from collections.abc import Iterable, Iterator

from clinic_agenda.models.agenda import TextFragment

# Vertical distance (PDF units) under which two fragments share a printed row.
# Tuned to the clinic schedule print template; changing it changes parsing.
LINE_TOLERANCE = 8.0


def _join_row(row: list[TextFragment]) -> str:
    # Baseline jitter can put a right-hand fragment first in the y sort.
    return " ".join(f.text for f in sorted(row, key=lambda f: f.x)).strip()


def reconstruct_page(
    fragments: Iterable[TextFragment], tolerance: float = LINE_TOLERANCE
) -> Iterator[str]:
    """Yield the visual lines of one page, top to bottom.

    Fragments are sorted by y descending, then x ascending. A fragment opens
    a new line when its y is more than ``tolerance`` away from the y of the
    fragment that opened the current line; the reference y does not move
    while a line accumulates. Each line is joined in x order.
    """
    items = sorted(
        (f for f in fragments if f.text.strip()),
        key=lambda f: (-f.y, f.x),
    )
    if not items:
        return

    reference_y = items[0].y
    row: list[TextFragment] = []
    for fragment in items:
        if abs(fragment.y - reference_y) > tolerance:
            yield _join_row(row)
            row = []
            reference_y = fragment.y
        row.append(fragment)
    yield _join_row(row)


def reconstruct_lines(
    pages: Iterable[Iterable[TextFragment]], tolerance: float = LINE_TOLERANCE
) -> Iterator[str]:
    """Concatenate the lines of every page, preserving page order."""
    for fragments in pages:
        yield from reconstruct_page(fragments, tolerance)


def reconstruct_text(
    pages: Iterable[Iterable[TextFragment]], tolerance: float = LINE_TOLERANCE
) -> str:
    return "".join(
        f"{line}\n" for line in reconstruct_lines(pages, tolerance)
    )
