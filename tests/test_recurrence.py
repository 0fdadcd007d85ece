import pytest
from pydantic import ValidationError

from keyword_categorizer.budget.recurrence import (
    ALL_PATTERN_TYPES,
    PATTERN_INTERVALS,
    PatternType,
    RecurrencePattern,
    calculate_month_difference,
    check_pattern_match,
    is_bi_monthly_match,
    is_monthly_match,
    is_quarterly_match,
    is_valid_pattern_type,
    is_yearly_match,
)


@pytest.mark.parametrize("target,base,expected", [
    (3, 1, 2),
    (2, 12, 2),   # December -> February wraps into next year
    (1, 3, 10),   # March -> January
    (6, 6, 0),
    (12, 1, 11),
])
def test_month_difference(target: int, base: int, expected: int) -> None:
    assert calculate_month_difference(target, base) == expected


@pytest.mark.parametrize("target,base", [(0, 1), (13, 1), (1, 0), (2.0, 1), (True, 1)])
def test_month_difference_rejects_invalid_months(target, base) -> None:
    with pytest.raises(ValueError):
        calculate_month_difference(target, base)


def test_quarterly_wraps_year() -> None:
    result = is_quarterly_match([11], 2)

    assert result.matches
    assert result.base_month == 11
    assert result.months_from_base == 3


def test_quarterly_miss_lists_differences() -> None:
    result = is_quarterly_match([1], 5)
    assert not result.matches
    assert "Checked differences: 4" in result.reasoning


def test_bi_monthly_any_base_month() -> None:
    result = is_bi_monthly_match([1, 7], 3)
    assert result.matches
    assert result.base_month == 1
    assert result.months_from_base == 2

    december = is_bi_monthly_match([2], 12)
    assert december.matches
    assert december.months_from_base == 10

    assert not is_bi_monthly_match([1], 2).matches


def test_yearly_is_direct_hit() -> None:
    assert is_yearly_match([6], 6).matches
    assert not is_yearly_match([6], 7).matches


def test_monthly_matches_every_valid_month() -> None:
    assert all(is_monthly_match([1], month).matches for month in range(1, 13))


@pytest.mark.parametrize("check", [is_monthly_match, is_bi_monthly_match, is_quarterly_match, is_yearly_match])
def test_empty_schedule_never_matches(check) -> None:
    result = check([], 5)
    assert not result.matches
    assert "No scheduled months" in result.reasoning


@pytest.mark.parametrize("target", [0, 13, "3", None, True])
def test_invalid_target_is_a_non_match(target) -> None:
    result = check_pattern_match("quarterly", [1], target)
    assert not result.matches
    assert "Invalid target month" in result.reasoning


def test_invalid_scheduled_months_are_reported() -> None:
    result = is_bi_monthly_match([0, 5, 14], 3)
    assert not result.matches
    assert "Invalid scheduled months: [0, 14]" in result.reasoning


def test_unknown_pattern_type() -> None:
    result = check_pattern_match("weekly", [1], 1)
    assert not result.matches
    assert "Unknown pattern type: weekly" in result.reasoning
    for pattern_type in ALL_PATTERN_TYPES:
        assert pattern_type in result.reasoning


def test_pattern_type_spellings() -> None:
    assert check_pattern_match("bi-monthly", [1], 5).matches
    assert check_pattern_match("bi_monthly", [1], 5).matches
    assert check_pattern_match(PatternType.YEARLY, [4], 4).matches
    assert is_valid_pattern_type("Quarterly")
    assert not is_valid_pattern_type("weekly")
    assert PATTERN_INTERVALS[PatternType.QUARTERLY] == 3


def test_queries_are_pure() -> None:
    months = [2, 8]
    first = check_pattern_match("quarterly", months, 11)
    second = check_pattern_match("quarterly", months, 11)
    assert first == second
    assert months == [2, 8]


def test_recurrence_pattern_model() -> None:
    pattern = RecurrencePattern(type="quarterly", scheduled_months={1})

    assert pattern.matches(4).matches
    assert not pattern.matches(5).matches
    assert pattern.months_in_year() == [1, 4, 7, 10]


def test_recurrence_pattern_with_several_bases() -> None:
    pattern = RecurrencePattern(type="bi_monthly", scheduled_months={2, 3})
    assert pattern.type == PatternType.BI_MONTHLY
    assert pattern.months_in_year() == list(range(1, 13))


def test_recurrence_pattern_validation() -> None:
    with pytest.raises(ValidationError):
        RecurrencePattern(type="quarterly", scheduled_months={13})
    with pytest.raises(ValidationError):
        RecurrencePattern(type="fortnightly", scheduled_months={1})


def test_recurrence_pattern_is_immutable() -> None:
    pattern = RecurrencePattern(type="yearly", scheduled_months={6})
    with pytest.raises(ValidationError):
        pattern.type = PatternType.MONTHLY
