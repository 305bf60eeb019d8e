"""Reply-language detection from the question's script and vocabulary."""

from __future__ import annotations

import re

ENGLISH = "english"
HINDI = "hindi"
HINGLISH = "hinglish"

_DEVANAGARI = re.compile(r"[ऀ-ॿ]")
_WORD = re.compile(r"[a-z]+")

# Romanised Hindi function words; rarely used in English sentences.
HINGLISH_HINTS = frozenset(
    {
        "kya", "hai", "hain", "kaise", "kab", "kahan", "kaun", "kitna", "kitni",
        "kyun", "mujhe", "mera", "meri", "aap", "tum", "hum", "bhi", "nahi",
        "nahin", "batao", "bataiye", "chahiye", "karna", "karo", "kar", "ka",
        "ki", "ke", "ko", "se", "mein", "wala", "wali", "aur", "liye",
    }
)
MIN_HINGLISH_HITS = 2

DIRECTIVES = {
    ENGLISH: "Respond in English.",
    HINDI: "Respond in Hindi using Devanagari script.",
    HINGLISH: "Respond in Hinglish (Hindi written in Latin script, mixed with English), matching the user's style.",
}


def language_from_hint(hint: str | None) -> str | None:
    """Map a voice-input locale such as ``"hi-IN"`` or ``"en"`` to a language."""
    if not hint:
        return None
    code = hint.strip().lower().replace("_", "-").split("-")[0]
    if code == "hi":
        return HINDI
    if code == "en":
        return ENGLISH
    return None


def detect_language(question: str, hint: str | None = None) -> str:
    """Pick the reply language for *question*.

    An explicit, recognised *hint* wins. Otherwise any Devanagari character
    means Hindi, at least :data:`MIN_HINGLISH_HITS` romanised hint words mean
    Hinglish, and everything else is English.
    """
    hinted = language_from_hint(hint)
    if hinted:
        return hinted
    if _DEVANAGARI.search(question or ""):
        return HINDI
    hits = sum(1 for word in _WORD.findall((question or "").lower()) if word in HINGLISH_HINTS)
    if hits >= MIN_HINGLISH_HITS:
        return HINGLISH
    return ENGLISH


def language_directive(language: str) -> str:
    return DIRECTIVES.get(language, DIRECTIVES[ENGLISH])
