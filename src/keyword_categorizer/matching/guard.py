"""Denylist-driven suppression of lexically plausible but wrong matches.

Almost every false positive comes from substring or stemming collisions, a
short keyword landing inside an unrelated longer word ("מס" in "מסעדות",
"car" in "oscar"). The guard keeps recall for legitimate variation and
rejects the known collisions. Denylists are curated per language; only
Hebrew and English data exists.
"""
import json
from pathlib import Path

from pydantic import BaseModel, Field

from keyword_categorizer.logger import get_logger

logger = get_logger(__name__)


DEFAULT_SUBSTRING_DENYLIST: dict[str, list[str]] = {
    # "tax" must not fire on restaurants, terminals, routes or screens
    "מס": ["מסעדות", "מסעדה", "מסוף", "מסלול", "מסך"],
    "בנק": [],
}

DEFAULT_WORD_DENYLIST: dict[str, list[str]] = {
    "car": ["scar", "oscar", "cargo", "career", "card", "care", "scary"],
    "food": ["seafood"],
}


class FalsePositiveConfig(BaseModel):
    substring_denylist: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_SUBSTRING_DENYLIST.items()}
    )
    word_denylist: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_WORD_DENYLIST.items()}
    )
    short_keyword_length: int = 3

    @classmethod
    def load(cls, path: str | Path) -> "FalsePositiveConfig":
        """Load denylists from a JSON file, falling back to defaults if unreadable."""
        try:
            with open(path, encoding="utf-8") as f:
                return cls.model_validate(json.load(f))
        except FileNotFoundError:
            logger.warning("False-positive file %s not found, using defaults.", path)
        except (json.JSONDecodeError, ValueError) as e:
            logger.error("Invalid false-positive file %s: %s. Using defaults.", path, e)
        return cls()

    def save(self, path: str | Path) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2, ensure_ascii=False)


class FalsePositiveGuard:
    def __init__(self, config: FalsePositiveConfig | None = None):
        self.config = config or FalsePositiveConfig()

    def is_false_positive(self, full_text: str, keyword: str) -> bool:
        """True if the text contains a substring known to collide with the keyword."""
        if not full_text or not keyword:
            return False
        for forbidden in self.config.substring_denylist.get(keyword, []):
            if forbidden and forbidden in full_text:
                return True
        return False

    def short_keyword_variants(self, keyword: str) -> set[str]:
        """Accepted surface forms for a short keyword: exact, plural, past, participle."""
        base = keyword.lower()
        variants = {base, base + "s", base + "es", base + "ed", base + "ing"}
        if base and base[-1].isalpha():
            # run -> running, stop -> stopped
            variants.update({base + base[-1] + "ing", base + base[-1] + "ed"})
        return variants

    def is_valid_stemmed_match(self, matched_word: str, keyword: str) -> bool:
        matched = matched_word.lower()
        base = keyword.lower()

        if matched in self.config.word_denylist.get(base, []):
            return False

        if len(base) <= self.config.short_keyword_length:
            return matched in self.short_keyword_variants(base)

        return True
