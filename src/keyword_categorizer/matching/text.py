"""Text normalization helpers shared by the match strategies.

Transactions from Israeli banks mix Latin and Hebrew script in the same
description, so word extraction handles both alphabets separately.
"""
import re
import string

HEBREW_CHAR_RE = re.compile(r"[\u0590-\u05FF]")
LATIN_WORD_RE = re.compile(r"\b[a-zA-Z]+\b", re.ASCII)
HEBREW_WORD_RE = re.compile(r"[\u0590-\u05FF]+")

# Unicode dashes and quotes are stripped too, Hebrew maqaf and geresh included
_PUNCTUATION_RE = re.compile(
    "[" + re.escape(string.punctuation) + r"\u05BE\u05F3\u05F4\u2010-\u2015\u2018-\u201F" + "]+"
)
_WHITESPACE_RE = re.compile(r"\s+")


def contains_hebrew(text: str | None) -> bool:
    if not text:
        return False
    return HEBREW_CHAR_RE.search(text) is not None


def extract_words(text: str | None) -> list[str]:
    """Return Latin words followed by Hebrew words, in order of appearance."""
    if not text:
        return []
    return LATIN_WORD_RE.findall(text) + HEBREW_WORD_RE.findall(text)


def strip_punctuation(text: str) -> str:
    return _PUNCTUATION_RE.sub(" ", text)


def normalize(text: str | None) -> str:
    if not text:
        return ""
    cleaned = strip_punctuation(text.lower())
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def is_single_word(keyword: str) -> bool:
    """True when the keyword is exactly one Latin or Hebrew word."""
    stripped = keyword.strip()
    words = extract_words(stripped)
    return len(words) == 1 and words[0] == stripped
