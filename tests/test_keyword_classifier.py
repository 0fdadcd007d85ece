from datetime import datetime

import pytest

from keyword_categorizer.classifiers.keyword import KeywordClassifier, eligible_types, search_terms
from keyword_categorizer.models import Category, Transaction, TransactionType


@pytest.fixture
def categories() -> list[Category]:
    return [
        Category(name="Car", type="Expense", parent="Transportation", keywords=["car wash"]),
        Category(name="Restaurants", type="Expense", keywords=["restaurant"]),
        Category(name="Tax", type="Expense", keywords=["מס", "מס הכנסה"]),
        Category(name="Salary", type="Income", keywords=["salary"]),
        Category(name="Uncurated"),
    ]


@pytest.fixture
def classifier(categories) -> KeywordClassifier:
    return KeywordClassifier(categories=categories)


def _tx(description: str, amount: float = -80.0, **kwargs) -> Transaction:
    return Transaction(description=description, amount=amount, date=datetime(2024, 5, 1), **kwargs)


def test_eligible_types() -> None:
    assert eligible_types(_tx("x", -1)) == {TransactionType.TRANSFER, TransactionType.EXPENSE}
    assert eligible_types(_tx("x", 1)) == {TransactionType.TRANSFER, TransactionType.INCOME}
    assert eligible_types(_tx("x", -1, type="Income")) == {"Income"}


def test_search_terms_skip_empty_and_duplicates() -> None:
    tx = _tx("CAR WASH", memo="  ", raw_data={"description": "CAR WASH", "category": "רכב"})
    assert search_terms(tx) == [("description", "CAR WASH"), ("rawData.category", "רכב")]


def test_ranking_orders_by_confidence(classifier: KeywordClassifier) -> None:
    ranked = classifier.rank(_tx("car wash downtown restaurant"))

    assert [m.category.name for m in ranked] == ["Car", "Restaurants"]
    assert ranked[0].match.confidence == pytest.approx(0.95)
    assert ranked[1].match.confidence == pytest.approx(0.90)


def test_classify_reports_subcategory(classifier: KeywordClassifier) -> None:
    result = classifier.classify(_tx("car wash downtown restaurant"))

    assert result is not None
    assert result.category.name == "Car"
    assert result.source == "keyword"
    assert result.matched_field == "description"
    assert result.reasoning.startswith("Enhanced keyword match: Found 1 keyword match(es)")
    assert 'Matched subcategory: "Car"' in result.reasoning


def test_valid_categories_restrict_candidates(classifier: KeywordClassifier) -> None:
    result = classifier.classify(_tx("car wash downtown restaurant"), valid_categories=["Restaurants"])
    assert result.category.name == "Restaurants"
    assert 'Matched category: "Restaurants"' in result.reasoning


def test_category_type_must_fit_transaction(classifier: KeywordClassifier) -> None:
    assert classifier.classify(_tx("restaurant", amount=120.0, type="Income")) is None
    assert classifier.classify(_tx("salary", amount=-10.0, type="Expense")) is None


def test_memo_field_is_searched(classifier: KeywordClassifier) -> None:
    result = classifier.classify(_tx("POS 1234", amount=5000.0, memo="monthly salary"))

    assert result.category.name == "Salary"
    assert result.matched_field == "memo"
    assert result.confidence == pytest.approx(0.90)


def test_translated_description_is_used(classifier: KeywordClassifier) -> None:
    result = classifier.classify(_tx("שטיפת רכב", translated_description="car wash"))
    assert result.category.name == "Car"


def test_hebrew_keyword_and_false_positive(classifier: KeywordClassifier) -> None:
    result = classifier.classify(_tx("תשלום מס הכנסה"))
    assert result.category.name == "Tax"
    assert "מס הכנסה (exact phrase)" in result.reasoning
    assert "מס (" not in result.reasoning
    assert classifier.classify(_tx("מסעדות השף")) is None


def test_threshold_is_exclusive(categories) -> None:
    strict = KeywordClassifier(categories=categories, threshold=0.9)
    assert strict.classify(_tx("dinner restaurant")) is None


def test_set_categories_replaces_list(classifier: KeywordClassifier) -> None:
    classifier.set_categories([Category(name="Fuel", keywords="fuel, gas station")])
    assert classifier.classify(_tx("gas station 24/7")).category.name == "Fuel"
    assert classifier.classify(_tx("restaurant")) is None
