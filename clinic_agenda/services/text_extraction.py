import logging

import fitz

from clinic_agenda.exceptions import ExtractionError
from clinic_agenda.models.agenda import TextFragment
from clinic_agenda.services.line_reconstructor import (
    LINE_TOLERANCE,
    reconstruct_text,
)

logger = logging.getLogger(__name__)


class TextExtractionService:
    def __init__(self, line_tolerance: float = LINE_TOLERANCE):
        self._line_tolerance = line_tolerance

    def extract_fragments(self, file_content: bytes) -> list[list[TextFragment]]:
        """Read positioned text spans from every page of a PDF.

        PyMuPDF reports coordinates from the top-left corner; y is flipped so
        that higher values sit higher on the page.

        Returns:
            One list of fragments per page, in page order.
        """
        try:
            doc = fitz.open(stream=file_content, filetype="pdf")
        except Exception as exc:
            raise ExtractionError(str(exc)) from exc
        if doc.page_count == 0:
            doc.close()
            raise ExtractionError("document has no pages")

        pages: list[list[TextFragment]] = []
        try:
            for page in doc:
                height = page.rect.height
                fragments: list[TextFragment] = []
                for block in page.get_text("dict")["blocks"]:
                    for line in block.get("lines", []):
                        for span in line["spans"]:
                            text = span["text"]
                            if not text.strip():
                                continue
                            x, y = span["origin"]
                            fragments.append(
                                TextFragment(text=text, x=x, y=height - y)
                            )
                pages.append(fragments)
        except Exception as exc:
            raise ExtractionError(str(exc)) from exc
        finally:
            doc.close()

        logger.info("Extracted text from %s page(s)", len(pages))
        return pages

    def extract_text(self, file_content: bytes) -> tuple[str, int]:
        """Return the reconstructed document text and the page count."""
        pages = self.extract_fragments(file_content)
        return reconstruct_text(pages, self._line_tolerance), len(pages)
