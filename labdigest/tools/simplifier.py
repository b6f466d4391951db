import re
from typing import Dict, Optional, Tuple

from labdigest.constants import SIMPLIFICATIONS


def compile_simplifications(mapping: Dict[str, str]) -> Tuple[Tuple[re.Pattern, str], ...]:
    return tuple(
        (re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE), f"{lay} ({term})")
        for term, lay in mapping.items()
    )


_DEFAULT_RULES = compile_simplifications(SIMPLIFICATIONS)


def simplify(text: str, mapping: Optional[Dict[str, str]] = None) -> str:
    """Annotate complex clinical terms with a lay phrase, e.g. "edema" -> "swelling (edema)"."""
    rules = _DEFAULT_RULES if mapping is None else compile_simplifications(mapping)
    for pattern, replacement in rules:
        text = pattern.sub(lambda _m, r=replacement: r, text)
    return text
