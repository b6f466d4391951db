from __future__ import annotations

import json
import re
import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Optional, List, Dict, Tuple

import pandas as pd

from labdigest.constants import LAB_TESTS, LAB_LEXICON_PATH, READINGS_COLS

logger = logging.getLogger(__name__)


class ReadingStatus(str, Enum):
    NORMAL = "normal"
    HIGH = "high"
    LOW = "low"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class LabTest:
    """One lexicon entry: canonical name, aliases and reference range."""
    name: str
    aliases: Tuple[str, ...] = ()
    ref_min: Optional[float] = None
    ref_max: Optional[float] = None
    unit: str = ""


# Declaration order matters: it is the output order and breaks alias ties.
Lexicon = Tuple[LabTest, ...]


@dataclass(frozen=True)
class TestReading:
    __test__ = False  # not a pytest class

    name: str
    value: float
    unit: str
    ref_min: Optional[float]
    ref_max: Optional[float]
    status: ReadingStatus

    def to_dict(self) -> Dict:
        """Document-store shape of a reading."""
        return {
            "name": self.name,
            "value": self.value,
            "unit": self.unit,
            "referenceRange": {"min": self.ref_min, "max": self.ref_max},
            "status": self.status.value,
        }


@dataclass(frozen=True)
class LabMatcher:
    test: LabTest
    pattern: re.Pattern


def classify(value: float, ref_min: Optional[float], ref_max: Optional[float]) -> ReadingStatus:
    """Status of a value against its reference range; both bounds are inclusive-to-normal."""
    if ref_min is None or ref_max is None:
        return ReadingStatus.UNKNOWN
    if value < ref_min:
        return ReadingStatus.LOW
    if value > ref_max:
        return ReadingStatus.HIGH
    return ReadingStatus.NORMAL


def display_name(name: str) -> str:
    # Upper-case the first letter of each word only ("hba1c" -> "Hba1c").
    return " ".join(w[:1].upper() + w[1:] for w in name.split(" "))


def build_lexicon(entries) -> Lexicon:
    return tuple(
        LabTest(
            name=name,
            aliases=tuple(aliases),
            ref_min=None if lo is None else float(lo),
            ref_max=None if hi is None else float(hi),
            unit=unit or "",
        )
        for name, aliases, lo, hi, unit in entries
    )


def load_lexicon(path: str) -> Lexicon:
    """
    Load a lexicon from a JSON file of the form
    {"tests": [{"name": ..., "aliases": [...], "min": ..., "max": ..., "unit": ...}]}.
    """
    with open(path, "r") as f:
        data = json.load(f)
    entries = []
    for t in data.get("tests", []):
        entries.append((
            str(t["name"]).lower(),
            [str(a).lower() for a in t.get("aliases", [])],
            t.get("min"),
            t.get("max"),
            t.get("unit", ""),
        ))
    lexicon = build_lexicon(entries)
    logger.info(f"Loaded {len(lexicon)} lab tests from {path}")
    return lexicon


@lru_cache(maxsize=1)
def default_lexicon() -> Lexicon:
    if LAB_LEXICON_PATH:
        try:
            return load_lexicon(LAB_LEXICON_PATH)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(
                f"Failed to load lab lexicon from LAB_LEXICON_PATH={LAB_LEXICON_PATH}: {e}; "
                f"using the built-in lexicon"
            )
    return build_lexicon(LAB_TESTS)


def compile_lexicon(lexicon: Lexicon) -> Tuple[LabMatcher, ...]:
    """Build one case-insensitive matcher per lexicon entry: name, separator, number, optional unit."""
    matchers = []
    for test in lexicon:
        names = "|".join(re.escape(n) for n in (test.name, *test.aliases))
        pattern = re.compile(
            rf"(?:{names})\s*(?::|-|=|\s)\s*(\d+\.?\d*)\s*(\w+(?:/\w+)?)?",
            re.IGNORECASE,
        )
        matchers.append(LabMatcher(test=test, pattern=pattern))
    return tuple(matchers)


@lru_cache(maxsize=8)
def _matchers_for(lexicon: Lexicon) -> Tuple[LabMatcher, ...]:
    return compile_lexicon(lexicon)


def extract_readings(text: str, lexicon: Optional[Lexicon] = None) -> List[TestReading]:
    """
    Return at most one reading per lexicon test, in lexicon order.

    Each test takes the first match of any of its names in the text; tests with
    no match are skipped.
    """
    lex = default_lexicon() if lexicon is None else lexicon
    out: List[TestReading] = []
    if not text:
        return out
    for matcher in _matchers_for(tuple(lex)):
        m = matcher.pattern.search(text)
        if not m:
            continue
        test = matcher.test
        value = float(m.group(1))
        unit = m.group(2) or test.unit or ""
        out.append(TestReading(
            name=display_name(test.name),
            value=value,
            unit=unit,
            ref_min=test.ref_min,
            ref_max=test.ref_max,
            status=classify(value, test.ref_min, test.ref_max),
        ))
    logger.info(f"Extracted {len(out)} lab readings")
    return out


def readings_frame(readings: List[TestReading]) -> pd.DataFrame:
    """Tabular view of readings using the READINGS_COLS schema."""
    rows = [
        {
            "name": r.name,
            "value": r.value,
            "unit": r.unit,
            "ref_low": r.ref_min,
            "ref_high": r.ref_max,
            "status": r.status.value,
        }
        for r in readings
    ]
    return pd.DataFrame(rows, columns=READINGS_COLS)
