"""Topic routing — decides between grounded and open-domain answering.

A keyword allowlist matched case-insensitively as whole words, with an
optional plural ending ("fee" matches "fees" but not "feel" or "coffee").
Any hit routes the question to grounded (retrieval-backed) mode. The
predicate is pure, so it can be replaced by a learned classifier without
touching the answer workflow.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache

from university_rag.config import DEFAULT_DOMAIN_KEYWORDS

GROUNDED = "grounded"
OPEN = "open"

# Stock phrases that contain a keyword without being about the domain.
_IDIOMS = re.compile(r"\bof course\b", re.IGNORECASE)


@lru_cache(maxsize=32)
def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str] | None:
    cleaned = sorted({k.strip().lower() for k in keywords if k and k.strip()}, key=len, reverse=True)
    if not cleaned:
        return None
    return re.compile(r"\b(?:" + "|".join(re.escape(k) for k in cleaned) + r")(?:e?s)?\b", re.IGNORECASE)


def is_domain_question(question: str, keywords: Iterable[str] = DEFAULT_DOMAIN_KEYWORDS) -> bool:
    """Return ``True`` when *question* mentions any domain keyword."""
    pattern = _keyword_pattern(tuple(keywords))
    if pattern is None:
        return False
    return bool(pattern.search(_IDIOMS.sub(" ", question or "")))


def route_question(question: str, keywords: Iterable[str] = DEFAULT_DOMAIN_KEYWORDS) -> str:
    """``"grounded"`` for domain questions, ``"open"`` otherwise."""
    return GROUNDED if is_domain_question(question, keywords) else OPEN
