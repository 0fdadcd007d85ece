import json
import os

from rapidfuzz import fuzz, process

from keyword_categorizer.logger import get_logger
from keyword_categorizer.matching.text import normalize
from keyword_categorizer.models import CategorizationResult, Category, Transaction

from .base import Classifier, search_text

logger = get_logger(__name__)


class MemoryMatcher(Classifier):
    """Recalls manual categorizations of previously seen descriptions."""

    def __init__(self, data_path: str = "manual_categorized.json", threshold: float = 90.0):
        self.data_path = data_path
        self.threshold = threshold
        self.memory: dict[str, dict] = {}  # normalized description+memo -> category fields
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.data_path):
            return
        try:
            with open(self.data_path, encoding="utf-8") as f:
                data = json.load(f)
        except (UnicodeDecodeError, ValueError) as e:
            logger.error("Corrupt memory file %s: %s. Starting empty.", self.data_path, e)
            self.memory = {}
            return
        if not isinstance(data, dict):
            logger.error(
                "Corrupt memory file %s: expected an object, got %s. Starting empty.",
                self.data_path,
                type(data).__name__,
            )
            self.memory = {}
            return
        self.memory = {key: value for key, value in data.items() if isinstance(value, dict)}

    def save(self) -> None:
        with open(self.data_path, "w", encoding="utf-8") as f:
            json.dump(self.memory, f, indent=2, ensure_ascii=False)

    @staticmethod
    def _key(transaction: Transaction) -> str:
        return normalize(search_text(transaction))

    def _result(self, key: str, confidence: float, source: str) -> CategorizationResult:
        category = Category.model_validate(self.memory[key])
        return CategorizationResult(
            category=category,
            confidence=confidence,
            source=source,
            reasoning=f"Manual categorization match: previously categorized '{key}'",
            matched_field="description",
        )

    def classify(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        if not self.memory:
            return None

        def is_valid(key: str) -> bool:
            return valid_categories is None or self.memory[key].get("name") in valid_categories

        key = self._key(transaction)
        if not key:
            return None

        if key in self.memory and is_valid(key):
            return self._result(key, 1.0, "memory_exact")

        candidates = [k for k in self.memory if is_valid(k)]
        best = process.extractOne(key, candidates, scorer=fuzz.token_sort_ratio)
        if best:
            match_key, score, _ = best
            if score >= self.threshold:
                return self._result(match_key, score / 100.0, "memory_fuzzy")

        return None

    def learn(self, transaction: Transaction, category: Category) -> None:
        key = self._key(transaction)
        if not key:
            return
        self.memory[key] = category.model_dump(exclude={"keywords"}, exclude_none=True)
        self.save()

    def clear(self) -> None:
        self.memory = {}
        self.save()
