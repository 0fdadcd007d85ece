from abc import ABC, abstractmethod

from keyword_categorizer.models import CategorizationResult, Category, Transaction


def search_text(transaction: Transaction) -> str:
    """Description and memo joined, the text a learned classifier sees."""
    parts = [transaction.description, transaction.memo or ""]
    return " ".join(part.strip() for part in parts if part and part.strip())


class Classifier(ABC):
    @abstractmethod
    def classify(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        """Suggest a category, or None when this classifier has no opinion."""

    @abstractmethod
    def learn(self, transaction: Transaction, category: Category) -> None:
        """Record a confirmed transaction-category pair."""
