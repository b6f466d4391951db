import threading

import fitz  # PyMuPDF
from typing import List, Dict, Optional

from labdigest.constants import PDF_MAX_PAGES

# PyMuPDF is not thread-safe; all document access goes through this lock.
_FITZ_LOCK = threading.Lock()


class PdfParseError(Exception):
    """Raised when PyMuPDF cannot open or read a document."""


def extract_pdf_pages(data: bytes, max_pages: Optional[int] = None) -> List[Dict]:
    """Extract text by page from raw PDF bytes, bounded to the first `max_pages` pages."""
    limit = PDF_MAX_PAGES if max_pages is None else max_pages
    out = []
    try:
        with _FITZ_LOCK:
            with fitz.open(stream=data, filetype="pdf") as doc:
                # Pages past the bound are never loaded.
                for i in range(min(max(limit, 0), doc.page_count)):
                    page = doc.load_page(i)
                    text = page.get_text("text") or ""
                    out.append({"page": i + 1, "text": text})
    except Exception as e:
        raise PdfParseError(str(e)) from e
    return out


def extract_pdf_text(data: bytes, max_pages: Optional[int] = None) -> str:
    """Plain text of the first pages, joined with blank lines. May be empty."""
    pages = extract_pdf_pages(data, max_pages=max_pages)
    return "\n\n".join(p["text"] for p in pages)
