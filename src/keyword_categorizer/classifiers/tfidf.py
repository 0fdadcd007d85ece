import os
import pickle

from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.linear_model import SGDClassifier
from sklearn.pipeline import Pipeline

from keyword_categorizer.logger import get_logger
from keyword_categorizer.matching.text import normalize
from keyword_categorizer.models import CategorizationResult, Category, Transaction

from .base import Classifier, search_text

logger = get_logger(__name__)


def _build_pipeline() -> Pipeline:
    # Character n-grams cope with Hebrew prefixes and mixed-script descriptions
    return Pipeline([
        ("tfidf", TfidfVectorizer(analyzer="char_wb", ngram_range=(3, 5), min_df=1)),
        ("clf", SGDClassifier(loss="log_loss", random_state=42)),
    ])


class TfidfClassifier(Classifier):
    """Fallback model trained on manually categorized transactions."""

    def __init__(self, data_path: str = "tfidf.pkl", threshold: float = 0.5):
        self.data_path = data_path
        self.threshold = threshold
        self.pipeline = _build_pipeline()
        self.examples: list[str] = []
        self.labels: list[dict] = []  # category fields, aligned with examples
        self.is_fitted = False
        self.load()

    @staticmethod
    def _document(transaction: Transaction) -> str:
        return normalize(" ".join(filter(None, [search_text(transaction), transaction.translated_description])))

    def _fit(self) -> None:
        names = [label["name"] for label in self.labels]
        if len(set(names)) < 2:
            self.is_fitted = False
            return
        self.pipeline.fit(self.examples, names)
        self.is_fitted = True

    def load(self) -> None:
        if not os.path.exists(self.data_path):
            return
        try:
            with open(self.data_path, "rb") as f:
                data = pickle.load(f)
        except (pickle.UnpicklingError, EOFError, AttributeError, ValueError) as e:
            self._reset_corrupt(e)
            return
        if not isinstance(data, dict):
            self._reset_corrupt(f"expected a mapping, got {type(data).__name__}")
            return

        examples = data.get("examples", [])
        labels = data.get("labels", [])
        if (
            not isinstance(examples, list)
            or not isinstance(labels, list)
            or len(examples) != len(labels)
            or not all(isinstance(label, dict) and "name" in label for label in labels)
        ):
            self._reset_corrupt("examples and labels do not line up")
            return
        self.examples = examples
        self.labels = labels
        self._fit()

    def _reset_corrupt(self, reason: object) -> None:
        logger.error("Corrupt TF-IDF data %s: %s. Starting untrained.", self.data_path, reason)
        self.examples, self.labels, self.is_fitted = [], [], False

    def save(self) -> None:
        with open(self.data_path, "wb") as f:
            pickle.dump({"examples": self.examples, "labels": self.labels}, f)

    def _category_for(self, name: str) -> Category:
        for label in reversed(self.labels):
            if label.get("name") == name:
                return Category.model_validate(label)
        return Category(name=name)

    def classify(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        if not self.is_fitted:
            return None

        document = self._document(transaction)
        if not document:
            return None

        try:
            probs = self.pipeline.predict_proba([document])[0]
        except ValueError as e:
            logger.warning("TF-IDF prediction failed for '%s': %s", document[:50], e)
            return None

        # Highest-probability class among the allowed ones
        ranked = sorted(zip(self.pipeline.classes_, probs), key=lambda pair: pair[1], reverse=True)
        for name, confidence in ranked:
            if valid_categories is not None and name not in valid_categories:
                continue
            if confidence < self.threshold:
                return None
            return CategorizationResult(
                category=self._category_for(str(name)),
                confidence=float(confidence),
                source="tfidf",
                reasoning=f"TF-IDF model suggests '{name}' with probability {confidence:.2f}",
            )
        return None

    def learn(self, transaction: Transaction, category: Category) -> None:
        document = self._document(transaction)
        if not document:
            return
        self.examples.append(document)
        self.labels.append(category.model_dump(exclude={"keywords"}, exclude_none=True))
        # Personal volumes are small enough to refit on every confirmation
        self._fit()
        self.save()

    def clear(self) -> None:
        self.examples = []
        self.labels = []
        self.is_fitted = False
        self.pipeline = _build_pipeline()
        self.save()
