import os
import sys
from pathlib import Path
import pytest

# Ensure project root is on sys.path so `import labdigest...` works when running pytest from repo root
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# Load environment variables if present
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

# Tests rely on the built-in lexicon and the default page bound
os.environ.pop("LAB_LEXICON_PATH", None)
os.environ.setdefault("PDF_MAX_PAGES", "15")


# Pytest configuration: enable PDF round-trip tests by default; allow disabling with --no-pdf
def pytest_addoption(parser):
    parser.addoption(
        "--no-pdf",
        action="store_true",
        default=False,
        help="Disable tests that build real PDFs with PyMuPDF (enabled by default)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "pdf: marks tests that write and parse real PDF files")


def pytest_collection_modifyitems(config, items):
    if not items:
        return
    if config.getoption("--no-pdf"):
        skip_pdf = pytest.mark.skip(reason="pdf tests disabled via --no-pdf")
        for item in items:
            if item.get_closest_marker("pdf") is not None:
                item.add_marker(skip_pdf)


def write_pdf(path: Path, pages):
    """Write a PDF with one page per entry; each entry is a list of text lines."""
    import fitz  # PyMuPDF
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page()
        y = 72
        for line in lines:
            page.insert_text((72, y), line, fontsize=10)
            y += 14
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def make_pdf(tmp_path):
    def _make(name, pages):
        return write_pdf(tmp_path / name, pages)
    return _make
