import os

from keyword_categorizer.classifiers.base import Classifier
from keyword_categorizer.classifiers.keyword import CategoryMatch, KeywordClassifier
from keyword_categorizer.classifiers.memory import MemoryMatcher
from keyword_categorizer.classifiers.tfidf import TfidfClassifier
from keyword_categorizer.core import settings
from keyword_categorizer.logger import get_logger
from keyword_categorizer.matching.matcher import KeywordMatcher, create_matcher
from keyword_categorizer.matching.models import MatcherStats
from keyword_categorizer.models import CategorizationResult, Category, Transaction

logger = get_logger(__name__)


class CategorizerService:
    def __init__(self,
                 categories: list[Category] | None = None,
                 memory_threshold: float | None = None,
                 keyword_threshold: float | None = None,
                 tfidf_threshold: float | None = None,
                 matcher: KeywordMatcher | None = None,
                 data_dir: str | None = None):

        data_dir = data_dir or settings.DATA_DIR
        self.classifiers: list[Classifier] = []

        # 1. Previous manual categorizations
        self.memory = MemoryMatcher(
            data_path=os.path.join(data_dir, "manual_categorized.json"),
            threshold=memory_threshold if memory_threshold is not None else settings.memory_threshold(),
        )
        self.classifiers.append(self.memory)

        # 2. Curated category keywords
        self.matcher = matcher or create_matcher(
            false_positives_path=settings.false_positives_path(),
            min_keyword_length=settings.min_keyword_length(),
        )
        self.keywords = KeywordClassifier(
            categories=categories,
            matcher=self.matcher,
            threshold=keyword_threshold if keyword_threshold is not None else settings.keyword_threshold(),
        )
        self.classifiers.append(self.keywords)

        # 3. Learned model (fallback)
        self.tfidf = TfidfClassifier(
            data_path=os.path.join(data_dir, "tfidf.pkl"),
            threshold=tfidf_threshold if tfidf_threshold is not None else settings.tfidf_threshold(),
        )
        self.classifiers.append(self.tfidf)

    def set_categories(self, categories: list[Category]) -> None:
        self.keywords.set_categories(categories)

    def categorize(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        for classifier in self.classifiers:
            classifier_name = classifier.__class__.__name__
            logger.debug(f"Trying {classifier_name} for: '{transaction.description[:50]}'")

            result = classifier.classify(transaction, valid_categories=valid_categories)

            if result:
                logger.debug(
                    f"{classifier_name} returned: '{result.category.name}' "
                    f"(confidence: {result.confidence:.2f})"
                )
                return result
            logger.debug(f"{classifier_name} returned: None")

        logger.debug(f"No classifier matched for: '{transaction.description[:50]}'")
        return None

    def rank_keyword_matches(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> list[CategoryMatch]:
        return self.keywords.rank(transaction, valid_categories)

    def learn(self, transaction: Transaction, category: Category) -> None:
        """
        Record a confirmed categorization with the classifiers that learn.
        """
        self.memory.learn(transaction, category)
        self.tfidf.learn(transaction, category)

    def clear_models(self) -> None:
        self.memory.clear()
        self.tfidf.clear()
        logger.info("Manual memory and TF-IDF model cleared.")

    def matcher_stats(self) -> MatcherStats:
        return self.matcher.get_stats()
