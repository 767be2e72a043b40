"""Single-page extraction from stored PDFs.

The uploaded file stays untouched on disk and is the only source for every
page request; nothing is rendered ahead of time.
"""

import io
import logging
import os

import pikepdf
from pikepdf import Pdf

from flipbook.exceptions import ExtractionFailure, PageOutOfRange, ResourceExhaustion

logger = logging.getLogger(__name__)


def extract_page_count(pdf_bytes: bytes) -> int:
    """Number of pages in ``pdf_bytes``. Used once, at upload time."""
    try:
        with Pdf.open(io.BytesIO(pdf_bytes)) as pdf:
            return len(pdf.pages)
    except MemoryError as e:
        logger.error("Out of memory counting pages of a %d byte upload", len(pdf_bytes))
        raise ResourceExhaustion() from e
    except pikepdf.PdfError as e:
        raise ExtractionFailure("Failed to process PDF", cause=e) from e


def extract_page(source_pdf_path: str, page_number: int) -> bytes:
    """Return page ``page_number`` (1-based) of the source as a standalone PDF.

    Owner-password encryption does not prevent loading. Output is saved with a
    deterministic file id, so the same page of the same file always yields the
    same bytes.
    """
    if not os.path.exists(source_pdf_path):
        raise ExtractionFailure(
            "PDF file not found on server",
            cause=FileNotFoundError(source_pdf_path),
        )

    try:
        with Pdf.open(source_pdf_path) as source:
            total_pages = len(source.pages)
            if page_number < 1 or page_number > total_pages:
                raise PageOutOfRange(page_number, total_pages)

            with Pdf.new() as single:
                single.pages.append(source.pages[page_number - 1])
                buffer = io.BytesIO()
                single.save(buffer, deterministic_id=True)
                return buffer.getvalue()

    except MemoryError as e:
        logger.error("Out of memory extracting page %s of %s", page_number, source_pdf_path)
        raise ResourceExhaustion() from e
    except (pikepdf.PdfError, OSError) as e:
        logger.warning("Could not extract page %s of %s: %s", page_number, source_pdf_path, e)
        raise ExtractionFailure("Failed to process PDF", cause=e) from e
