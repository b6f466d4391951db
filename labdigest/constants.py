"""
Centralized constants for the report pipeline: the lab lexicon, the lay-language
dictionary, fixed user-facing messages and summarizer thresholds.
These are imported by the ingestion and tools modules so that reference data
lives in one place and is never mutated at runtime.
"""
from __future__ import annotations

import os
from typing import List, Dict, Tuple, Optional


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


# Extraction collaborator settings
PDF_MAX_PAGES: int = _env_int("PDF_MAX_PAGES", 15)
LAB_LEXICON_PATH: Optional[str] = os.getenv("LAB_LEXICON_PATH") or None
WORKERS: int = _env_int("LABDIGEST_WORKERS", 4)
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Built-in lab lexicon, in declaration order:
# (canonical name, aliases, ref min, ref max, unit)
LAB_TESTS: Tuple[Tuple[str, Tuple[str, ...], Optional[float], Optional[float], str], ...] = (
    ("hemoglobin", ("hgb", "hb"), 12, 17, "g/dL"),
    ("white blood cells", ("wbc", "leukocytes", "white cell count"), 4, 11, "x10^9/L"),
    ("red blood cells", ("rbc", "erythrocytes", "red cell count"), 4.2, 5.8, "x10^12/L"),
    ("platelets", ("plt", "thrombocytes"), 150, 450, "x10^9/L"),
    ("glucose", ("blood sugar", "fbs", "blood glucose"), 70, 100, "mg/dL"),
    ("cholesterol", ("total cholesterol", "tc"), 0, 200, "mg/dL"),
    ("hdl cholesterol", ("hdl-c", "high-density lipoprotein"), 40, 60, "mg/dL"),
    ("ldl cholesterol", ("ldl-c", "low-density lipoprotein"), 0, 100, "mg/dL"),
    ("triglycerides", ("tg",), 0, 150, "mg/dL"),
    ("hba1c", ("glycated hemoglobin", "a1c"), 4, 5.7, "%"),
    ("creatinine", ("creat",), 0.6, 1.2, "mg/dL"),
    ("urea", ("bun", "blood urea nitrogen"), 7, 20, "mg/dL"),
    ("uric acid", ("ua",), 3.5, 7.2, "mg/dL"),
    ("alt", ("alanine transaminase", "sgpt"), 0, 40, "U/L"),
    ("ast", ("aspartate transaminase", "sgot"), 0, 40, "U/L"),
    ("tsh", ("thyroid stimulating hormone",), 0.4, 4.0, "mIU/L"),
    ("neutrophils", ("neut",), 40, 70, "%"),
    ("lymphocytes", ("lymph",), 20, 40, "%"),
    ("monocytes", ("mono",), 2, 10, "%"),
    ("eosinophils", ("eos",), 1, 6, "%"),
    ("basophils", ("baso",), 0, 2, "%"),
)

# Processed readings table schema (see tools.labs_tool.readings_frame)
READINGS_COLS: List[str] = [
    "name",
    "value",
    "unit",
    "ref_low",
    "ref_high",
    "status",
]

# Complex clinical term -> lay phrase, applied in this order
SIMPLIFICATIONS: Dict[str, str] = {
    "hypertension": "high blood pressure",
    "myocardial infarction": "heart attack",
    "cerebrovascular accident": "stroke",
    "neoplasm": "tumor",
    "malignant": "cancerous",
    "benign": "non-cancerous",
    "edema": "swelling",
    "dyspnea": "difficulty breathing",
    "hyperlipidemia": "high cholesterol",
    "hyperglycemia": "high blood sugar",
}

# Stem fragments that mark a token as a key medical term
MEDICAL_TERM_MARKERS: Tuple[str, ...] = (
    "diagnos", "prescript", "treatment", "test", "result",
    "condition", "patient", "mg", "dose", "symptom",
)

# Summarizer settings
SHORT_TEXT_CHARS = 500
SENTENCE_MIN_CHARS = 20
SENTENCE_MAX_CHARS = 300
SUMMARY_SENTENCES = 6
KEY_TERMS_BELOW_CHARS = 100
MAX_KEY_TERMS = 5
KEY_TERM_MIN_TOKEN_CHARS = 5

# User-facing messages
SHORT_DOCUMENT_PREFIX = "This document is quite short. Here's the content: "
NO_SENTENCES_MESSAGE = (
    "Could not generate a summary. The document may not contain enough text in a readable format."
)
NO_MEANINGFUL_SENTENCES_MESSAGE = (
    "Could not generate a summary. The document may not contain enough meaningful text."
)
SUMMARY_ERROR_MESSAGE = (
    "An error occurred while generating the summary. "
    "The document may contain complex formatting or non-standard text."
)
EMPTY_CONTENT_MESSAGE = (
    "No readable text content was found in this PDF. The file may be encrypted, "
    "contain only images, or use a format that can't be processed."
)
PARSE_FAILURE_MESSAGE = (
    "There was an error processing this PDF file. The file may be corrupted, "
    "password-protected, or in an unsupported format."
)
