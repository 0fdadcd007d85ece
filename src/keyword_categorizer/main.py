"""
Command-line entry point.

    keyword-categorizer match "PAYMENT TO CAR WASH" -k car -k wash
    keyword-categorizer pattern quarterly --months 11 --target 2
    keyword-categorizer categorize transactions.json --categories categories.json
    keyword-categorizer installments transactions.json --currency ILS
"""
import argparse
import json
import sys
from typing import Any

from pydantic import ValidationError

from keyword_categorizer.budget.recurrence import (
    ALL_PATTERN_TYPES,
    PATTERN_DESCRIPTIONS,
    PatternType,
    RecurrencePattern,
    check_pattern_match,
)
from keyword_categorizer.core import settings
from keyword_categorizer.domain.installments import group_transactions_by_installments
from keyword_categorizer.domain.keywords import merge_keywords, parse_keyword_list
from keyword_categorizer.domain.transactions import build_transactions
from keyword_categorizer.logger import get_logger, setup_logging
from keyword_categorizer.manager import CategorizerService
from keyword_categorizer.matching.matcher import create_matcher
from keyword_categorizer.models import Category

logger = get_logger(__name__)


def _load_json(path: str) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _pattern_type(value: str) -> PatternType:
    pattern = PatternType.parse(value)
    if pattern is None:
        raise argparse.ArgumentTypeError(
            f"unknown pattern type '{value}' (choose from {', '.join(ALL_PATTERN_TYPES)})"
        )
    return pattern


def _print(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def cmd_match(args: argparse.Namespace) -> int:
    keywords = merge_keywords(args.keyword, parse_keyword_list(args.keywords))
    matcher = create_matcher(
        false_positives_path=args.false_positives or settings.false_positives_path(),
        min_keyword_length=settings.min_keyword_length(),
    )
    result = matcher.match_keywords(args.text, args.translated, keywords)
    _print(result.model_dump(mode="json"))
    return 0 if result.has_matches else 1


def cmd_pattern(args: argparse.Namespace) -> int:
    if args.target is None:
        try:
            pattern = RecurrencePattern(type=args.type, scheduled_months=frozenset(args.months))
        except ValidationError as e:
            logger.error("Invalid recurrence pattern: %s", e)
            return 2
        _print({
            "type": pattern.type.value,
            "description": PATTERN_DESCRIPTIONS[pattern.type],
            "months": pattern.months_in_year(),
        })
        return 0

    result = check_pattern_match(args.type, args.months, args.target)
    _print(result.model_dump())
    return 0 if result.matches else 1


def cmd_categorize(args: argparse.Namespace) -> int:
    settings.log_environment()
    categories = [Category.model_validate(item) for item in _load_json(args.categories)]
    transactions = build_transactions(_load_json(args.transactions))
    service = CategorizerService(categories=categories, data_dir=args.data_dir)

    output = []
    for transaction in transactions:
        result = service.categorize(transaction)
        output.append({
            "id": transaction.id,
            "description": transaction.description,
            "result": result.model_dump(mode="json") if result else None,
        })
    _print(output)
    logger.info("Keyword matcher stats: %s", service.matcher_stats().model_dump())
    return 0


def cmd_installments(args: argparse.Namespace) -> int:
    transactions = build_transactions(_load_json(args.transactions))
    grouping = group_transactions_by_installments(transactions, args.currency)
    _print(grouping.model_dump(mode="json"))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keyword-categorizer",
        description="Keyword-based categorization of bank transactions",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    match = subparsers.add_parser("match", help="Match keywords against a transaction description")
    match.add_argument("text", help="Transaction description")
    match.add_argument("--translated", default=None, help="Translated description")
    match.add_argument("-k", "--keyword", action="append", default=[], help="Keyword (repeatable)")
    match.add_argument("--keywords", default=None, help="Comma-separated keywords")
    match.add_argument("--false-positives", default=None, help="JSON file with denylists")
    match.set_defaults(func=cmd_match)

    pattern = subparsers.add_parser("pattern", help="Check a budget recurrence pattern")
    pattern.add_argument(
        "type", type=_pattern_type, help=f"Recurrence type: {', '.join(ALL_PATTERN_TYPES)}"
    )
    pattern.add_argument("--months", type=int, nargs="+", required=True, help="Scheduled base months (1-12)")
    pattern.add_argument("--target", type=int, default=None, help="Month to check; omit to list the year")
    pattern.set_defaults(func=cmd_pattern)

    categorize = subparsers.add_parser("categorize", help="Categorize scraped transactions")
    categorize.add_argument("transactions", help="JSON file with a list of transactions")
    categorize.add_argument("--categories", required=True, help="JSON file with categories and keywords")
    categorize.add_argument("--data-dir", default=None, help="Directory for learned data")
    categorize.set_defaults(func=cmd_categorize)

    installments = subparsers.add_parser("installments", help="Group installment transactions")
    installments.add_argument("transactions", help="JSON file with a list of transactions")
    installments.add_argument("--currency", default="ILS", help="Target currency")
    installments.set_defaults(func=cmd_installments)

    return parser


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
