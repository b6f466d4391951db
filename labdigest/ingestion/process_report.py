import argparse
import os
import glob
import json
import shutil
import tempfile
import uuid
import logging
import concurrent.futures
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Optional

from dotenv import load_dotenv
load_dotenv()

from labdigest.constants import (
    PDF_MAX_PAGES,
    WORKERS,
    LOG_LEVEL,
    EMPTY_CONTENT_MESSAGE,
    PARSE_FAILURE_MESSAGE,
)
from labdigest.ingestion.normalize import normalize_text
from labdigest.ingestion.utils_pdf import extract_pdf_text, PdfParseError
from labdigest.tools.labs_tool import TestReading, Lexicon, extract_readings, readings_frame
from labdigest.tools.summarizer import SummaryOutcome, summarize_report

logger = logging.getLogger(__name__)


class ReportOutcome(str, Enum):
    OK = "ok"
    EMPTY_CONTENT = "empty_content"
    PARSE_FAILURE = "parse_failure"
    SUMMARIZATION_FAILURE = "summarization_failure"


@dataclass
class ReportResult:
    summary: str
    test_results: List[TestReading] = field(default_factory=list)
    outcome: ReportOutcome = ReportOutcome.OK

    def to_dict(self) -> Dict:
        return {
            "summary": self.summary,
            "testResults": [r.to_dict() for r in self.test_results],
        }


def _remove_quietly(file_path: str) -> None:
    try:
        os.remove(file_path)
        logger.info(f"Deleted temporary file: {file_path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Failed to delete temporary file {file_path}: {e}")


def _analyze(file_path: str, lexicon: Optional[Lexicon], max_pages: int) -> ReportResult:
    try:
        with open(file_path, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.error(f"Failed to read {file_path}: {e}")
        return ReportResult(PARSE_FAILURE_MESSAGE, outcome=ReportOutcome.PARSE_FAILURE)
    logger.info(f"Processing {file_path} ({len(data)} bytes)")

    try:
        raw_text = extract_pdf_text(data, max_pages=max_pages)
    except PdfParseError as e:
        logger.error(f"Failed to parse {file_path}: {e}")
        return ReportResult(PARSE_FAILURE_MESSAGE, outcome=ReportOutcome.PARSE_FAILURE)

    if not raw_text or not raw_text.strip():
        logger.warning(f"No text content found in {file_path}")
        return ReportResult(EMPTY_CONTENT_MESSAGE, outcome=ReportOutcome.EMPTY_CONTENT)

    text = normalize_text(raw_text)
    logger.info(f"Extracted text length: {len(text)}")

    readings = extract_readings(text, lexicon)
    summary = summarize_report(text)
    outcome = ReportOutcome.OK
    if summary.outcome == SummaryOutcome.FAILURE:
        outcome = ReportOutcome.SUMMARIZATION_FAILURE
    return ReportResult(summary.text, readings, outcome)


def process_document(
    file_path: str,
    lexicon: Optional[Lexicon] = None,
    max_pages: Optional[int] = None,
) -> ReportResult:
    """
    Summarize a report PDF and extract its lab readings.

    Never raises: every failure yields a presentable ReportResult. The file at
    `file_path` is deleted before returning, whatever the outcome.
    """
    try:
        return _analyze(file_path, lexicon, PDF_MAX_PAGES if max_pages is None else max_pages)
    except Exception as e:
        logger.error(f"Unexpected error processing {file_path}: {e}")
        return ReportResult(PARSE_FAILURE_MESSAGE, outcome=ReportOutcome.PARSE_FAILURE)
    finally:
        _remove_quietly(file_path)


def process_documents(
    file_paths: List[str],
    max_workers: Optional[int] = None,
    lexicon: Optional[Lexicon] = None,
) -> List[ReportResult]:
    """Run independent process_document calls in a thread pool; results follow input order."""
    workers = max(1, max_workers or WORKERS)
    results: List[Optional[ReportResult]] = [None] * len(file_paths)
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_idx = {
            executor.submit(process_document, fp, lexicon): i for i, fp in enumerate(file_paths)
        }
        for future in concurrent.futures.as_completed(future_to_idx):
            results[future_to_idx[future]] = future.result()
    return results


def expand_inputs(paths: List[str]) -> List[str]:
    out: List[str] = []
    for p in paths:
        if os.path.isdir(p):
            out.extend(sorted(glob.glob(os.path.join(p, "*.pdf"))))
        else:
            out.append(p)
    return out


def stage_copy(src: str, staging_dir: str) -> str:
    """Copy `src` into `staging_dir` as <uuid4>-<basename>; the pipeline consumes the copy."""
    dst = os.path.join(staging_dir, f"{uuid.uuid4()}-{os.path.basename(src)}")
    shutil.copyfile(src, dst)
    return dst


def main(argv=None):
    parser = argparse.ArgumentParser(description="Summarize lab report PDFs and extract test readings")
    parser.add_argument("paths", nargs="+", help="PDF files or directories of PDFs")
    parser.add_argument("--format", choices=["json", "table"], default="json")
    parser.add_argument("--workers", type=int, default=WORKERS)
    args = parser.parse_args(argv)

    logging.basicConfig(level=LOG_LEVEL)

    sources = expand_inputs(args.paths)
    if not sources:
        logger.warning("No PDF files found.")
        return []

    with tempfile.TemporaryDirectory(prefix="labdigest-") as staging:
        staged = []
        for src in sources:
            try:
                staged.append(stage_copy(src, staging))
            except OSError as e:
                # A missing staged file still flows through as a parse failure.
                logger.error(f"Failed to stage {src}: {e}")
                staged.append(os.path.join(staging, f"{uuid.uuid4()}-missing"))
        results = process_documents(staged, max_workers=args.workers)

    if args.format == "json":
        payload = [
            {"file": src, **res.to_dict(), "outcome": res.outcome.value}
            for src, res in zip(sources, results)
        ]
        print(json.dumps(payload, indent=2))
    else:
        for src, res in zip(sources, results):
            print(f"== {src} [{res.outcome.value}]")
            print(res.summary)
            if res.test_results:
                print(readings_frame(res.test_results).to_string(index=False))
            print()
    return results


if __name__ == "__main__":
    main()
