"""Collapse credit-card installment charges into one logical expense.

Israeli card issuers report a purchase paid in N installments as N monthly
transactions that share the scraper ``identifier``, the purchase's
``originalAmount`` and the installment total. Budget views want the purchase,
not the monthly slices.
"""
import re
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from keyword_categorizer.logger import get_logger
from keyword_categorizer.models import Transaction

logger = get_logger(__name__)

# (amount, from_currency, to_currency, on_date) -> converted amount
CurrencyConverter = Callable[[float, str, str, datetime], float]

INSTALLMENTS_TYPE = "installments"


class InstallmentSlice(BaseModel):
    id: str
    amount: float
    date: datetime
    description: str | None = None
    currency: str


class InstallmentGroup(BaseModel):
    group_id: str
    transaction: Transaction  # earliest installment carrying the group totals
    installment_count: int
    installment_ids: list[str]
    slices: list[InstallmentSlice]
    total_original_amount: float
    total_converted_amount: float


class GroupedEntry(BaseModel):
    transaction: Transaction
    converted_amount: float
    is_group: bool = False
    installment_count: int = 1
    group: InstallmentGroup | None = None


class InstallmentGrouping(BaseModel):
    entries: list[GroupedEntry] = Field(default_factory=list)
    total_amount: float = 0.0
    processed_count: int = 0


def transaction_key(transaction: Transaction) -> str:
    return transaction.id if transaction.id is not None else f"obj-{id(transaction)}"


def _installment_total(raw: dict[str, Any]) -> Any:
    installments = raw.get("installments")
    if isinstance(installments, dict) and installments.get("total"):
        return installments["total"]
    return raw.get("totalInstallments")


def is_installment_transaction(transaction: Transaction) -> bool:
    raw = transaction.raw_data
    return bool(
        raw.get("type") == INSTALLMENTS_TYPE
        and transaction.identifier
        and raw.get("originalAmount")
        and _installment_total(raw)
    )


def find_related_installments(
    base: Transaction,
    transactions: list[Transaction],
    exclude_ids: set[str] | None = None,
) -> list[Transaction]:
    if not is_installment_transaction(base):
        return [base]

    exclude_ids = exclude_ids or set()
    base_raw = base.raw_data
    return [
        t for t in transactions
        if t.identifier == base.identifier
        and t.raw_data.get("type") == INSTALLMENTS_TYPE
        and t.raw_data.get("originalAmount") == base_raw.get("originalAmount")
        and _installment_total(t.raw_data) == _installment_total(base_raw)
        and transaction_key(t) not in exclude_ids
    ]


def convert_amount(
    transaction: Transaction,
    target_currency: str,
    converter: CurrencyConverter | None = None,
) -> float:
    amount = abs(transaction.amount)
    if converter is None or transaction.currency == target_currency:
        return amount
    on_date = transaction.processed_date or transaction.date
    try:
        return float(converter(amount, transaction.currency, target_currency, on_date))
    except Exception as e:
        logger.warning(
            "Currency conversion failed for transaction %s (%s -> %s): %s",
            transaction_key(transaction),
            transaction.currency,
            target_currency,
            e,
        )
        return amount


def _sort_date(transaction: Transaction) -> datetime:
    moment = transaction.processed_date or transaction.date
    # Mixed naive/aware dates from different scrapers still need an order
    return moment.replace(tzinfo=None)


def create_installment_group(
    installments: list[Transaction],
    target_currency: str,
    converter: CurrencyConverter | None = None,
) -> InstallmentGroup:
    ordered = sorted(installments, key=_sort_date)
    earliest = ordered[0]

    converted = [convert_amount(t, target_currency, converter) for t in ordered]
    total_original = sum(abs(t.amount) for t in ordered)
    total_converted = sum(converted)
    installment_ids = [transaction_key(t) for t in ordered]

    clean_identifier = re.sub(r"-+$", "", str(earliest.identifier))
    group_id = f"installment-group-{clean_identifier}--{earliest.raw_data.get('originalAmount')}"

    group_transaction = earliest.model_copy(update={
        "id": group_id,
        "description": earliest.description or earliest.charged_account or "",
        "amount": total_original,
        "raw_data": {
            **earliest.raw_data,
            "isGroup": True,
            "totalAmount": total_original,
            "convertedAmount": total_converted,
        },
    })

    return InstallmentGroup(
        group_id=group_id,
        transaction=group_transaction,
        installment_count=len(ordered),
        installment_ids=installment_ids,
        slices=[
            InstallmentSlice(
                id=transaction_key(t),
                amount=t.amount,
                date=t.processed_date or t.date,
                description=t.description or t.charged_account,
                currency=t.currency,
            )
            for t in ordered
        ],
        total_original_amount=total_original,
        total_converted_amount=total_converted,
    )


def group_transactions_by_installments(
    transactions: list[Transaction],
    target_currency: str,
    converter: CurrencyConverter | None = None,
) -> InstallmentGrouping:
    grouping = InstallmentGrouping()
    processed: set[str] = set()

    for transaction in transactions:
        key = transaction_key(transaction)
        if key in processed:
            continue

        related = []
        if is_installment_transaction(transaction):
            related = find_related_installments(transaction, transactions, processed)

        if len(related) > 1:
            group = create_installment_group(related, target_currency, converter)
            grouping.entries.append(GroupedEntry(
                transaction=group.transaction,
                converted_amount=group.total_converted_amount,
                is_group=True,
                installment_count=group.installment_count,
                group=group,
            ))
            grouping.total_amount += group.total_converted_amount
            processed.update(group.installment_ids)
            logger.debug("Grouped %d installments into %s", group.installment_count, group.group_id)
            continue

        converted = convert_amount(transaction, target_currency, converter)
        grouping.entries.append(GroupedEntry(transaction=transaction, converted_amount=converted))
        grouping.total_amount += converted
        processed.add(key)

    grouping.processed_count = len(processed)
    return grouping


def get_installment_group_info(entry: GroupedEntry) -> dict[str, Any]:
    if not entry.is_group or entry.group is None:
        return {
            "is_group": False,
            "installment_count": 1,
            "group_id": None,
            "original_transaction_ids": [transaction_key(entry.transaction)],
        }
    return {
        "is_group": True,
        "installment_count": entry.group.installment_count,
        "group_id": entry.group.group_id,
        "original_transaction_ids": list(entry.group.installment_ids),
        "slices": [s.model_dump() for s in entry.group.slices],
    }
