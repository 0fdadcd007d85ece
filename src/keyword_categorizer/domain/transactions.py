from datetime import datetime
from typing import Any

from keyword_categorizer.logger import get_logger
from keyword_categorizer.models import Transaction

logger = get_logger(__name__)

_ID_KEYS = ("_id", "id", "transaction_id")


def parse_date(value: str | datetime | None) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparseable date '%s', using now.", value)
    return datetime.now()


def _parse_optional_date(value: Any) -> datetime | None:
    if not value:
        return None
    return parse_date(value)


def _parse_amount(raw: dict[str, Any]) -> float:
    for key in ("amount", "chargedAmount", "originalAmount"):
        value = raw.get(key)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning("Invalid %s=%r on scraped transaction.", key, value)
    return 0.0


def _first_text(*values: Any) -> str | None:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value
    return None


def build_transaction(raw: dict[str, Any]) -> Transaction:
    """Build a Transaction from a stored or freshly scraped bank record.

    Stored records keep the scraper payload under ``rawData``; fresh scraper
    output is the payload itself.
    """
    raw_data = raw.get("rawData") or raw.get("raw_data")
    if not isinstance(raw_data, dict):
        raw_data = dict(raw)

    tx_id = next((str(raw[key]) for key in _ID_KEYS if raw.get(key) is not None), None)
    date_value = parse_date(raw.get("date") or raw_data.get("date"))
    identifier = raw.get("identifier", raw_data.get("identifier"))

    return Transaction(
        id=tx_id,
        description=str(raw.get("description") or raw_data.get("description") or ""),
        amount=_parse_amount(raw),
        date=date_value,
        currency=raw.get("currency") or raw_data.get("originalCurrency") or "ILS",
        memo=_first_text(raw.get("memo"), raw_data.get("memo")),
        translated_description=_first_text(raw.get("translatedDescription")),
        type=raw.get("type") if raw.get("type") in {"Expense", "Income", "Transfer"} else None,
        identifier=str(identifier) if identifier is not None else None,
        charged_account=_first_text(raw.get("chargedAccount"), raw_data.get("chargedAccount")),
        processed_date=_parse_optional_date(raw.get("processedDate") or raw_data.get("processedDate")),
        raw_data=raw_data,
    )


def build_transactions(raw_records: list[dict[str, Any]]) -> list[Transaction]:
    return [build_transaction(record) for record in raw_records if isinstance(record, dict)]
