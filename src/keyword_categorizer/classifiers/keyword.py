from dataclasses import dataclass

from keyword_categorizer.logger import get_logger
from keyword_categorizer.matching.matcher import KeywordMatcher
from keyword_categorizer.matching.models import AggregateMatch
from keyword_categorizer.models import CategorizationResult, Category, Transaction, TransactionType

from .base import Classifier

logger = get_logger(__name__)


@dataclass(frozen=True)
class CategoryMatch:
    category: Category
    match: AggregateMatch
    matched_field: str


def eligible_types(transaction: Transaction) -> set[str]:
    if transaction.type:
        return {transaction.type}
    # Transfers go either way; otherwise the sign decides
    direction = TransactionType.EXPENSE if transaction.amount < 0 else TransactionType.INCOME
    return {TransactionType.TRANSFER, direction}


def search_terms(transaction: Transaction) -> list[tuple[str, str]]:
    """(field name, text) pairs worth matching, most specific field first."""
    raw = transaction.raw_data
    candidates = [
        ("description", transaction.description),
        ("memo", transaction.memo),
        ("rawData.description", raw.get("description")),
        ("rawData.memo", raw.get("memo")),
        ("rawData.category", raw.get("category")),
    ]
    terms: list[tuple[str, str]] = []
    seen: set[str] = set()
    for field, value in candidates:
        if not isinstance(value, str) or not value.strip() or value in seen:
            continue
        terms.append((field, value))
        seen.add(value)
    return terms


class KeywordClassifier(Classifier):
    """Assigns the category whose curated keywords best match the transaction text."""

    def __init__(
        self,
        categories: list[Category] | None = None,
        matcher: KeywordMatcher | None = None,
        threshold: float = 0.5,
    ):
        self.categories = list(categories or [])
        self.matcher = matcher or KeywordMatcher()
        self.threshold = threshold

    def set_categories(self, categories: list[Category]) -> None:
        self.categories = list(categories)

    def rank(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> list[CategoryMatch]:
        """Every category clearing the threshold, best first."""
        allowed_types = eligible_types(transaction)
        ranked: list[CategoryMatch] = []

        for category in self.categories:
            if not category.keywords:
                continue
            if valid_categories is not None and category.name not in valid_categories:
                continue
            if category.type and category.type not in allowed_types:
                continue

            best: CategoryMatch | None = None
            for field, text in search_terms(transaction):
                translated = transaction.translated_description if field == "description" else None
                result = self.matcher.match_keywords(text, translated, category.keywords)
                if result.has_matches and result.confidence > self.threshold:
                    if best is None or result.confidence > best.match.confidence:
                        best = CategoryMatch(category=category, match=result, matched_field=field)
            if best:
                ranked.append(best)

        # Stable sort keeps configuration order between equal confidences
        ranked.sort(key=lambda m: m.match.confidence, reverse=True)
        return ranked

    def classify(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        ranked = self.rank(transaction, valid_categories)
        if not ranked:
            return None

        top = ranked[0]
        label = "subcategory" if top.category.parent else "category"
        return CategorizationResult(
            category=top.category,
            confidence=top.match.confidence,
            source="keyword",
            matched_field=top.matched_field,
            reasoning=(
                f"Enhanced keyword match: {top.match.reasoning} in {top.matched_field}. "
                f"Matched {label}: \"{top.category.name}\" (confidence: {top.match.confidence:.2f})"
            ),
        )

    def learn(self, transaction: Transaction, category: Category) -> None:
        # Keyword lists are curated by the user, not learned
        pass
