"""
Extractive summarization of lab/medical report text.

Sentences are scored with TF-IDF where every filtered sentence is one document
of a small corpus built from the report itself. The documents hold the raw word
tokens of each sentence; each token is looked up by its lower-cased Porter stem,
so a token only scores when its stem also occurs verbatim in the sentence. The
top sentences are returned in their original order and passed through the
medical term simplifier.
"""
from __future__ import annotations

import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Dict

import numpy as np
from nltk.stem import PorterStemmer
from nltk.tokenize import RegexpTokenizer
from sklearn.feature_extraction.text import CountVectorizer

from labdigest.constants import (
    SHORT_TEXT_CHARS,
    SENTENCE_MIN_CHARS,
    SENTENCE_MAX_CHARS,
    SUMMARY_SENTENCES,
    KEY_TERMS_BELOW_CHARS,
    MAX_KEY_TERMS,
    KEY_TERM_MIN_TOKEN_CHARS,
    MEDICAL_TERM_MARKERS,
    SHORT_DOCUMENT_PREFIX,
    NO_SENTENCES_MESSAGE,
    NO_MEANINGFUL_SENTENCES_MESSAGE,
    SUMMARY_ERROR_MESSAGE,
)
from labdigest.tools.simplifier import simplify

logger = logging.getLogger(__name__)

SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")

tokenizer = RegexpTokenizer(r"[A-Za-z0-9_]+")
stemmer = PorterStemmer(mode=PorterStemmer.ORIGINAL_ALGORITHM)


class SummaryOutcome(str, Enum):
    OK = "ok"
    SHORT_DOCUMENT = "short_document"
    NO_SENTENCES = "no_sentences"
    FAILURE = "failure"


@dataclass(frozen=True)
class SummaryResult:
    text: str
    outcome: SummaryOutcome = SummaryOutcome.OK


@dataclass
class SentenceCandidate:
    text: str
    index: int
    score: float = 0.0


def stem(token: str) -> str:
    return stemmer.stem(token.lower())


def split_sentences(text: str) -> List[str]:
    # Greedy split on terminal punctuation; abbreviations are not special-cased.
    return SENTENCE_RE.findall(text)


def candidate_sentences(sentences: List[str]) -> List[str]:
    cleaned = (re.sub(r"\s+", " ", s).strip() for s in sentences)
    return [s for s in cleaned if SENTENCE_MIN_CHARS <= len(s) < SENTENCE_MAX_CHARS]


def score_sentences(sentences: List[str]) -> List[SentenceCandidate]:
    """Length-normalized TF-IDF score of each sentence against the sentence corpus."""
    documents = [tokenizer.tokenize(s) for s in sentences]
    candidates = [SentenceCandidate(text=s, index=i) for i, s in enumerate(sentences)]
    if not any(documents):
        return candidates

    vectorizer = CountVectorizer(analyzer=lambda tokens: tokens, lowercase=False)
    counts = vectorizer.fit_transform(documents).tocsr()
    vocab: Dict[str, int] = vectorizer.vocabulary_
    doc_freq = np.asarray((counts > 0).sum(axis=0)).ravel()
    idf = 1.0 + np.log(len(documents) / (1.0 + doc_freq))

    for cand, tokens in zip(candidates, documents):
        total = 0.0
        for token in tokens:
            col = vocab.get(stem(token))
            if col is None:
                continue
            total += counts[cand.index, col] * idf[col]
        cand.score = total / (len(tokens) or 1)
    return candidates


def extract_medical_terms(text: str) -> List[str]:
    """Up to MAX_KEY_TERMS surface forms whose stems carry a medical marker, in text order."""
    terms: Dict[str, None] = {}
    for token in tokenizer.tokenize(text.lower()):
        if len(token) <= KEY_TERM_MIN_TOKEN_CHARS:
            continue
        stemmed = stem(token)
        if not any(marker in stemmed for marker in MEDICAL_TERM_MARKERS):
            continue
        m = re.search(rf"\b{token}\w*\b", text, re.IGNORECASE)
        if m:
            terms.setdefault(m.group(0), None)
    return list(terms)[:MAX_KEY_TERMS]


def summarize_report(text: str) -> SummaryResult:
    if len(text) < SHORT_TEXT_CHARS:
        return SummaryResult(f"{SHORT_DOCUMENT_PREFIX}{text}", SummaryOutcome.SHORT_DOCUMENT)

    try:
        sentences = split_sentences(text)
        if not sentences:
            logger.warning("No sentences found for summary")
            return SummaryResult(NO_SENTENCES_MESSAGE, SummaryOutcome.NO_SENTENCES)

        clean = candidate_sentences(sentences)
        if not clean:
            logger.warning("No sentences within length limits for summary")
            return SummaryResult(NO_MEANINGFUL_SENTENCES_MESSAGE, SummaryOutcome.NO_SENTENCES)

        ranked = sorted(score_sentences(clean), key=lambda c: c.score, reverse=True)
        top = sorted(ranked[:SUMMARY_SENTENCES], key=lambda c: c.index)
        summary = " ".join(c.text for c in top)

        if len(summary) < KEY_TERMS_BELOW_CHARS:
            terms = extract_medical_terms(text)
            if terms:
                summary += f" Key terms: {', '.join(terms)}."

        return SummaryResult(simplify(summary))
    except Exception as e:
        logger.error(f"Failed to summarize text: {e}")
        return SummaryResult(SUMMARY_ERROR_MESSAGE, SummaryOutcome.FAILURE)


def summarize(text: str) -> str:
    return summarize_report(text).text
