import re

_NEWLINE_RUN_RE = re.compile(r"\n{3,}")
_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E\n\t]")
_WHITESPACE_RUN_RE = re.compile(r"\s{2,}")


def _collapse_run(m: re.Match) -> str:
    # A run that spans a paragraph break keeps it; anything else becomes one space.
    return "\n\n" if m.group(0).count("\n") >= 2 else " "


def normalize_text(raw_text: str) -> str:
    """Collapse whitespace and control noise from extracted PDF text.

    Idempotent: normalize_text(normalize_text(x)) == normalize_text(x).
    """
    if not raw_text:
        return ""
    text = _NEWLINE_RUN_RE.sub("\n\n", raw_text)
    text = _NON_PRINTABLE_RE.sub(" ", text)
    text = _WHITESPACE_RUN_RE.sub(_collapse_run, text)
    return text.strip()
