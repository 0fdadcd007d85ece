import re
from collections.abc import Callable


class RegexCache:
    """Compiled patterns keyed by search phrase.

    Entries are rebuilt identically for a given key, so concurrent writers
    racing on the same key store equivalent patterns and need no lock.
    """

    def __init__(self) -> None:
        self._patterns: dict[str, re.Pattern[str]] = {}

    def get(self, key: str, build: Callable[[], re.Pattern[str]]) -> re.Pattern[str]:
        pattern = self._patterns.get(key)
        if pattern is None:
            pattern = build()
            self._patterns[key] = pattern
        return pattern

    def clear(self) -> None:
        self._patterns.clear()

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, key: object) -> bool:
        return key in self._patterns
