from datetime import datetime

from keyword_categorizer.domain.transactions import build_transaction, build_transactions, parse_date


def test_build_from_stored_record() -> None:
    tx = build_transaction({
        "_id": "665f",
        "description": "פז תחנת דלק",
        "amount": -250,
        "date": "2024-03-01T22:00:00.000Z",
        "currency": "ILS",
        "type": "Expense",
        "translatedDescription": "Paz gas station",
        "rawData": {"memo": "Fuel", "category": "רכב", "identifier": 4455},
    })

    assert tx.id == "665f"
    assert tx.amount == -250.0
    assert tx.type == "Expense"
    assert tx.memo == "Fuel"
    assert tx.identifier == "4455"
    assert tx.translated_description == "Paz gas station"
    assert tx.raw_data["category"] == "רכב"
    assert tx.date.year == 2024


def test_build_from_scraper_payload() -> None:
    tx = build_transaction({
        "identifier": "99-",
        "description": "AMAZON MKTPLACE",
        "chargedAmount": "-42.5",
        "originalCurrency": "USD",
        "date": "2024-05-02",
        "processedDate": "2024-06-02",
        "type": "installments",
    })

    assert tx.id is None
    assert tx.amount == -42.5
    assert tx.currency == "USD"
    assert tx.type is None
    assert tx.raw_data["type"] == "installments"
    assert tx.processed_date == datetime(2024, 6, 2)


def test_invalid_values_fall_back() -> None:
    tx = build_transaction({"description": None, "amount": "n/a", "date": "yesterday"})
    assert tx.description == ""
    assert tx.amount == 0.0
    assert isinstance(tx.date, datetime)


def test_parse_date_passthrough() -> None:
    moment = datetime(2024, 1, 1, 12, 0)
    assert parse_date(moment) is moment


def test_build_transactions_skips_non_records() -> None:
    assert len(build_transactions([{"description": "a", "amount": 1}, "junk", None])) == 1
