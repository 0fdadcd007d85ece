from collections.abc import Iterable, Mapping
from typing import Any


def parse_keyword_list(raw_keywords: str | None) -> list[str]:
    """Split a comma-separated keyword string, dropping blanks and repeats."""
    if not raw_keywords:
        return []
    return normalize_keywords(raw_keywords.split(","))


def normalize_keywords(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return parse_keyword_list(value)
    if not isinstance(value, Iterable) or isinstance(value, (bytes, Mapping)):
        return []

    keywords: list[str] = []
    seen: set[str] = set()
    for item in value:
        if item is None:
            continue
        keyword = str(item).strip()
        folded = keyword.casefold()
        if keyword and folded not in seen:
            keywords.append(keyword)
            seen.add(folded)
    return keywords


def merge_keywords(existing: list[str] | None, new_keywords: list[str]) -> list[str]:
    return normalize_keywords(list(existing or []) + list(new_keywords))
