"""Recurrence pattern matching for budget planning.

A recurring budget item is anchored at one or more base months and repeats
monthly, every two months, every quarter or once a year. Queries here are
pure functions of the scheduled months and the target month; invalid input
gives a non-matching result with a reason, never an exception, since callers
probe every month of a year speculatively.
"""
from collections.abc import Iterable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from keyword_categorizer.logger import get_logger

logger = get_logger(__name__)


class PatternType(str, Enum):
    MONTHLY = "monthly"
    BI_MONTHLY = "bi-monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: "str | PatternType") -> "PatternType | None":
        if isinstance(value, PatternType):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower().replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            return None


ALL_PATTERN_TYPES: tuple[str, ...] = tuple(p.value for p in PatternType)

PATTERN_INTERVALS: dict[PatternType, int] = {
    PatternType.MONTHLY: 1,
    PatternType.BI_MONTHLY: 2,
    PatternType.QUARTERLY: 3,
    PatternType.YEARLY: 12,
}

PATTERN_DESCRIPTIONS: dict[PatternType, str] = {
    PatternType.MONTHLY: "Every month",
    PatternType.BI_MONTHLY: "Every 2 months",
    PatternType.QUARTERLY: "Every 3 months (quarterly)",
    PatternType.YEARLY: "Once per year",
}


def is_valid_pattern_type(value: Any) -> bool:
    return PatternType.parse(value) is not None


class PatternMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    matches: bool
    reasoning: str
    base_month: int | None = None
    months_from_base: int | None = None


def _is_month(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 12


def calculate_month_difference(target_month: int, base_month: int) -> int:
    """Months from ``base_month`` forward to ``target_month``, wrapping the year (0-11).

    December -> February is 2, March -> January is 10.
    """
    if not _is_month(target_month):
        raise ValueError(f"Invalid target month: {target_month}. Must be integer between 1-12.")
    if not _is_month(base_month):
        raise ValueError(f"Invalid base month: {base_month}. Must be integer between 1-12.")
    return (target_month - base_month + 12) % 12


def _format_months(months: Iterable[Any]) -> str:
    return "[" + ", ".join(str(m) for m in months) + "]"


def _validate(label: str, scheduled_months: Any, target_month: Any) -> PatternMatch | None:
    if not isinstance(scheduled_months, (list, tuple, set, frozenset)) or not scheduled_months:
        return PatternMatch(
            matches=False,
            reasoning=f"No scheduled months provided for {label} pattern matching",
        )
    if not _is_month(target_month):
        return PatternMatch(
            matches=False,
            reasoning=f"Invalid target month: {target_month}. Must be integer between 1-12.",
        )
    invalid = [m for m in scheduled_months if not _is_month(m)]
    if invalid:
        return PatternMatch(
            matches=False,
            reasoning=f"Invalid scheduled months: {_format_months(invalid)}. All must be integers between 1-12.",
        )
    return None


def _ordered(scheduled_months: Iterable[int]) -> list[int]:
    # Sets carry no order; report the earliest base month deterministically
    if isinstance(scheduled_months, (set, frozenset)):
        return sorted(scheduled_months)
    return list(scheduled_months)


def _interval_match(
    pattern: PatternType,
    scheduled_months: Any,
    target_month: Any,
) -> PatternMatch:
    label = pattern.value
    error = _validate(label, scheduled_months, target_month)
    if error:
        return error

    interval = PATTERN_INTERVALS[pattern]
    bases = _ordered(scheduled_months)
    differences = []
    for base_month in bases:
        difference = calculate_month_difference(target_month, base_month)
        differences.append(difference)
        if difference % interval == 0:
            result = PatternMatch(
                matches=True,
                base_month=base_month,
                months_from_base=difference,
                reasoning=(
                    f"{label.capitalize()} pattern match: month {target_month} is {difference} months "
                    f"from base month {base_month} (divisible by {interval})"
                ),
            )
            logger.info("%s", result.reasoning)
            return result

    result = PatternMatch(
        matches=False,
        reasoning=(
            f"No {label} pattern match for month {target_month} from scheduled months "
            f"{_format_months(bases)}. Checked differences: {', '.join(str(d) for d in differences)}"
        ),
    )
    logger.debug("%s", result.reasoning)
    return result


def is_monthly_match(scheduled_months: Any, target_month: Any) -> PatternMatch:
    error = _validate(PatternType.MONTHLY.value, scheduled_months, target_month)
    if error:
        return error
    return PatternMatch(
        matches=True,
        reasoning=f"Monthly pattern: occurs every month, including month {target_month}",
    )


def is_bi_monthly_match(scheduled_months: Any, target_month: Any) -> PatternMatch:
    return _interval_match(PatternType.BI_MONTHLY, scheduled_months, target_month)


def is_quarterly_match(scheduled_months: Any, target_month: Any) -> PatternMatch:
    return _interval_match(PatternType.QUARTERLY, scheduled_months, target_month)


def is_yearly_match(scheduled_months: Any, target_month: Any) -> PatternMatch:
    error = _validate(PatternType.YEARLY.value, scheduled_months, target_month)
    if error:
        return error

    months = _format_months(_ordered(scheduled_months))
    if target_month in scheduled_months:
        result = PatternMatch(
            matches=True,
            base_month=target_month,
            months_from_base=0,
            reasoning=f"Yearly pattern match: month {target_month} is explicitly scheduled in {months}",
        )
    else:
        result = PatternMatch(
            matches=False,
            reasoning=f"Yearly pattern mismatch: month {target_month} not found in scheduled months {months}",
        )
    logger.debug("%s", result.reasoning)
    return result


_HANDLERS = {
    PatternType.MONTHLY: is_monthly_match,
    PatternType.BI_MONTHLY: is_bi_monthly_match,
    PatternType.QUARTERLY: is_quarterly_match,
    PatternType.YEARLY: is_yearly_match,
}


def check_pattern_match(
    pattern_type: "str | PatternType",
    scheduled_months: Any,
    target_month: Any,
) -> PatternMatch:
    pattern = PatternType.parse(pattern_type)
    if pattern is None:
        return PatternMatch(
            matches=False,
            reasoning=f"Unknown pattern type: {pattern_type}. Supported types: {', '.join(ALL_PATTERN_TYPES)}",
        )
    return _HANDLERS[pattern](scheduled_months, target_month)


class RecurrencePattern(BaseModel):
    """A budget item's recurrence, built once from user config and queried per month."""
    model_config = ConfigDict(frozen=True)

    type: PatternType
    scheduled_months: frozenset[int]

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        return PatternType.parse(value) or value

    @field_validator("scheduled_months")
    @classmethod
    def _check_months(cls, value: frozenset[int]) -> frozenset[int]:
        invalid = sorted(m for m in value if not 1 <= m <= 12)
        if invalid:
            raise ValueError(f"scheduled months must be between 1 and 12, got {invalid}")
        return value

    def matches(self, target_month: int) -> PatternMatch:
        return check_pattern_match(self.type, self.scheduled_months, target_month)

    def months_in_year(self) -> list[int]:
        return [month for month in range(1, 13) if self.matches(month).matches]
