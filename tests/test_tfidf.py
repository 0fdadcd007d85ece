import pickle
from datetime import datetime
from pathlib import Path

import pytest

from keyword_categorizer.classifiers.tfidf import TfidfClassifier
from keyword_categorizer.models import Category, Transaction


@pytest.fixture
def tfidf_classifier(tmp_path: Path) -> TfidfClassifier:
    data_file = tmp_path / "tfidf.pkl"
    return TfidfClassifier(data_path=str(data_file), threshold=0.5)

def _learn_all(classifier: TfidfClassifier, samples: list[tuple[str, Category]]) -> None:
    for desc, cat in samples:
        t = Transaction(description=desc, amount=-10.0, date=datetime.now())
        classifier.learn(t, cat)

def test_tfidf_learn_and_classify(tfidf_classifier: TfidfClassifier) -> None:
    food = Category(name="Food", type="Expense")
    transport = Category(name="Transport", type="Expense")
    _learn_all(tfidf_classifier, [
        ("McDonalds", food),
        ("Burger King", food),
        ("Grocery Store", food),
        ("Uber", transport),
        ("Lyft", transport),
    ])

    t_test = Transaction(description="McDonalds Drive Thru", amount=-15.0, date=datetime.now())
    res = tfidf_classifier.classify(t_test)

    # Few samples, but the shared "mcdonalds" n-grams dominate
    assert res is not None
    assert res.category.name == "Food"
    assert res.category.type == "Expense"
    assert res.source == "tfidf"

def test_tfidf_needs_two_categories(tfidf_classifier: TfidfClassifier) -> None:
    _learn_all(tfidf_classifier, [("Netflix", Category(name="Subscriptions"))])

    assert not tfidf_classifier.is_fitted
    t = Transaction(description="Netflix", amount=-10.0, date=datetime.now())
    assert tfidf_classifier.classify(t) is None

def test_tfidf_valid_categories(tfidf_classifier: TfidfClassifier) -> None:
    _learn_all(tfidf_classifier, [
        ("Netflix", Category(name="Subscriptions")),
        ("Salary ACME", Category(name="Income")),
    ])
    t = Transaction(description="Netflix", amount=-10.0, date=datetime.now())
    assert tfidf_classifier.classify(t, valid_categories=["Groceries"]) is None

def test_tfidf_persistence(tfidf_classifier: TfidfClassifier, tmp_path: Path) -> None:
    _learn_all(tfidf_classifier, [
        ("Netflix", Category(name="Subscriptions")),
        ("Salary", Category(name="Income")),
    ])

    # Create new instance pointing to same file
    data_file = tmp_path / "tfidf.pkl"
    new_classifier = TfidfClassifier(data_path=str(data_file))

    assert new_classifier.is_fitted
    assert len(new_classifier.examples) == 2

def test_tfidf_corrupt_file(tmp_path: Path) -> None:
    data_file = tmp_path / "tfidf.pkl"
    data_file.write_bytes(b"")

    classifier = TfidfClassifier(data_path=str(data_file))
    assert not classifier.is_fitted
    assert classifier.examples == []

def test_tfidf_clear(tfidf_classifier: TfidfClassifier, tmp_path: Path) -> None:
    _learn_all(tfidf_classifier, [
        ("Netflix", Category(name="Subscriptions")),
        ("Salary", Category(name="Income")),
    ])
    tfidf_classifier.clear()

    reloaded = TfidfClassifier(data_path=str(tmp_path / "tfidf.pkl"))
    assert not reloaded.is_fitted
    assert reloaded.labels == []

@pytest.mark.parametrize("payload", [
    [1, 2],
    "examples",
    {"examples": ["netflix"], "labels": []},
    {"examples": ["netflix", "salary"], "labels": ["Subscriptions", "Income"]},
])
def test_tfidf_unexpected_pickle_content(tmp_path: Path, payload) -> None:
    data_file = tmp_path / "tfidf.pkl"
    data_file.write_bytes(pickle.dumps(payload))

    classifier = TfidfClassifier(data_path=str(data_file))
    assert not classifier.is_fitted
    assert classifier.examples == []
    assert classifier.labels == []
