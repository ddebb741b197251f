# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
Parsers for the textual filter expressions accepted by the CLI and HTTP API.

Every parser validates the whole expression up front and raises
FilterParseError before any resource is inspected. Parsers are pure: they
build a new filter object and touch no shared state.

Expression grammar by kind:

    tag       Environment | Environment=prod | Environment~prod
              | Environment=/^prod-.*/ | Environment!=   (tag absent)
    regex     name:/^web-\\d+$/ | name:web
    date      created:2024-01-01..2024-06-30 | created:>2024-01-01
              | updated:<2024-12-31 | created:2024-03-15
    state     running,stopped
    property  instance_type=t3.micro | cpu>=4 | name^=web | name$=-prod
              | description~legacy | network.vpc_id!=vpc-123
    cost      100..500 | >100 | <500
    type      aws:ec2:instance,aws:s3:bucket
    provider  aws,gcp
"""

import logging
import re
from datetime import timedelta
from typing import Any, Callable, Iterable, Union

from ..exceptions import FilterParseError
from ..models.enums import CompareOperator, TagOperator
from ..utils.date_utils import parse_date
from ..utils.value_utils import to_float
from .base import Filter
from .predicates import (
    CostFilter,
    DateRangeFilter,
    PropertyFilter,
    ProviderFilter,
    RegexFilter,
    StateFilter,
    TagFilter,
    TypeFilter,
)

logger = logging.getLogger(__name__)

FilterParser = Callable[[Any], Filter]

# Symbol -> operator, in tie-break order for operators found at the same
# position. Two-character symbols come before their one-character prefixes.
PROPERTY_OPERATORS: list[tuple[str, CompareOperator]] = [
    (">=", CompareOperator.GREATER_THAN_OR_EQUAL),
    ("<=", CompareOperator.LESS_THAN_OR_EQUAL),
    ("!=", CompareOperator.NOT_EQUALS),
    ("=", CompareOperator.EQUALS),
    (">", CompareOperator.GREATER_THAN),
    ("<", CompareOperator.LESS_THAN),
    ("~", CompareOperator.CONTAINS),
    ("^=", CompareOperator.STARTS_WITH),
    ("$=", CompareOperator.ENDS_WITH),
]

_TAG_REGEX_PATTERN = re.compile(r"^(?P<key>.*?)=/(?P<pattern>.+)/$", re.DOTALL)
_INT_PATTERN = re.compile(r"^[+-]?\d+$")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_TRUE_VALUES = {"t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"f", "F", "FALSE", "false", "False"}


def _compile_pattern(kind: str, expression: str, pattern: str) -> "re.Pattern[str]":
    try:
        return re.compile(pattern)
    except re.error as e:
        raise FilterParseError(kind, expression, f"invalid regular expression: {e}") from e


def parse_tag_filter(expression: str) -> TagFilter:
    """
    Parse a tag filter expression.

    Args:
        expression: ``KEY``, ``KEY=VALUE``, ``KEY~VALUE``, ``KEY=/PATTERN/``
            or ``KEY!=`` (tag must be absent)

    Returns:
        TagFilter

    Raises:
        FilterParseError: On an empty expression, empty key, invalid regex
            or the unsupported ``KEY!=VALUE`` form
    """
    if not expression:
        raise FilterParseError("tag", expression, "empty tag filter expression")

    match = _TAG_REGEX_PATTERN.match(expression)
    if match:
        key, pattern = match.group("key"), match.group("pattern")
        operator, value = TagOperator.MATCHES, pattern
        _compile_pattern("tag", expression, pattern)
    elif "!=" in expression:
        key, value = expression.split("!=", 1)
        if value:
            raise FilterParseError(
                "tag",
                expression,
                "tag != operator not supported, use KEY!= for absence or a regex",
            )
        operator = TagOperator.NOT_EXISTS
    elif "~" in expression:
        key, value = expression.split("~", 1)
        operator = TagOperator.CONTAINS
    elif "=" in expression:
        key, value = expression.split("=", 1)
        operator = TagOperator.EQUALS
    else:
        key, value, operator = expression, "", TagOperator.EXISTS

    if not key:
        raise FilterParseError("tag", expression, "tag key must not be empty")
    return TagFilter(key, operator, value)


def parse_regex_filter(expression: str) -> RegexFilter:
    """Parse ``FIELD:/PATTERN/`` or ``FIELD:PATTERN``."""
    if ":" not in expression:
        raise FilterParseError(
            "regex", expression, "expected field:/pattern/"
        )
    field, pattern = expression.split(":", 1)
    if not field:
        raise FilterParseError("regex", expression, "field must not be empty")

    opens = pattern.startswith("/")
    closes = pattern.endswith("/") and len(pattern) > 1
    if opens and closes:
        pattern = pattern[1:-1]
    elif opens or pattern.endswith("/"):
        raise FilterParseError("regex", expression, "unbalanced '/' around pattern")

    if not pattern:
        raise FilterParseError("regex", expression, "pattern must not be empty")
    return RegexFilter(field, _compile_pattern("regex", expression, pattern))


def _parse_date(expression: str, text: str):
    try:
        return parse_date(text)
    except ValueError as e:
        raise FilterParseError("date", expression, str(e)) from e


def parse_date_range_filter(expression: str) -> DateRangeFilter:
    """
    Parse a date range filter.

    ``FIELD:FROM..TO`` and ``FIELD:>DATE`` / ``FIELD:<DATE`` give inclusive
    bounds. A bare ``FIELD:DATE`` covers the 24 hours starting at DATE.
    """
    if ":" not in expression:
        raise FilterParseError("date", expression, "expected field:range")
    field, range_expression = expression.split(":", 1)

    if field not in DateRangeFilter.FIELDS:
        raise FilterParseError(
            "date", expression, f"unknown date field '{field}' (use created or updated)"
        )

    if ".." in range_expression:
        bounds = range_expression.split("..")
        if len(bounds) != 2:
            raise FilterParseError("date", expression, f"invalid date range: {range_expression}")
        start = _parse_date(expression, bounds[0])
        end = _parse_date(expression, bounds[1])
        if start > end:
            raise FilterParseError("date", expression, "range start is after range end")
        return DateRangeFilter(field, start=start, end=end)

    if range_expression.startswith(">"):
        return DateRangeFilter(field, start=_parse_date(expression, range_expression[1:]))

    if range_expression.startswith("<"):
        return DateRangeFilter(field, end=_parse_date(expression, range_expression[1:]))

    day = _parse_date(expression, range_expression)
    return DateRangeFilter(field, start=day, end=day + timedelta(hours=24), end_inclusive=False)


def parse_state_filter(expression: str) -> StateFilter:
    """Parse a comma-separated list of states."""
    states = [s.strip() for s in (expression or "").split(",")]
    states = [s for s in states if s]
    if not states:
        raise FilterParseError("state", expression, "empty state filter")
    return StateFilter(states)


def parse_value(text: str) -> Any:
    """
    Coerce a filter value string to the most specific type.

    Tried in order: 64-bit integer, float, bool, and finally the string
    itself.
    """
    if _INT_PATTERN.match(text):
        number = int(text)
        if _INT64_MIN <= number <= _INT64_MAX:
            return number

    number = to_float(text)
    if number is not None:
        return number

    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False

    return text


def _find_operator(expression: str):
    best = None
    for symbol, operator in PROPERTY_OPERATORS:
        position = expression.find(symbol)
        if position < 0:
            continue
        # strict comparison keeps the earlier list entry on ties
        if best is None or position < best[0]:
            best = (position, symbol, operator)
    return best


def parse_property_filter(expression: str) -> PropertyFilter:
    """
    Parse ``PATH<op>VALUE``.

    The operator is the leftmost symbol found in the expression; symbols
    starting at the same position resolve in PROPERTY_OPERATORS order, so
    ``cpu>=4`` reads as ``>=`` and ``name^=web`` as starts-with.
    """
    found = _find_operator(expression)
    if found is None:
        raise FilterParseError("property", expression, "no operator found")

    position, symbol, operator = found
    path = expression[:position]
    raw_value = expression[position + len(symbol):]
    if not path:
        raise FilterParseError("property", expression, "property path must not be empty")
    return PropertyFilter(path, operator, parse_value(raw_value))


def _parse_cost(expression: str, text: str) -> float:
    value = to_float(text.strip())
    if value is None:
        raise FilterParseError("cost", expression, f"invalid cost: {text!r}")
    return value


def parse_cost_filter(expression: str) -> CostFilter:
    """Parse ``MIN..MAX``, ``>MIN`` or ``<MAX`` (bounds inclusive)."""
    if ".." in expression:
        bounds = expression.split("..")
        if len(bounds) != 2:
            raise FilterParseError("cost", expression, "invalid cost range")
        min_cost = _parse_cost(expression, bounds[0])
        max_cost = _parse_cost(expression, bounds[1])
        if min_cost > max_cost:
            raise FilterParseError("cost", expression, "minimum cost is above maximum cost")
        return CostFilter(min_cost=min_cost, max_cost=max_cost)

    if expression.startswith(">"):
        return CostFilter(min_cost=_parse_cost(expression, expression[1:]))

    if expression.startswith("<"):
        return CostFilter(max_cost=_parse_cost(expression, expression[1:]))

    raise FilterParseError("cost", expression, "expected MIN..MAX, >MIN or <MAX")


def _split_list(values: Union[str, Iterable[str]]) -> list[str]:
    if isinstance(values, str):
        values = values.split(",")
    items = []
    for value in values:
        items.extend(part.strip() for part in value.split(","))
    return [item for item in items if item]


def parse_type_filter(types: Union[str, Iterable[str]]) -> TypeFilter:
    """Build a TypeFilter from a list or a comma-separated string."""
    return TypeFilter(_split_list(types))


def parse_provider_filter(providers: Union[str, Iterable[str]]) -> ProviderFilter:
    """Build a ProviderFilter from a list or a comma-separated string."""
    return ProviderFilter(_split_list(providers))


FILTER_PARSERS: dict[str, FilterParser] = {
    "tag": parse_tag_filter,
    "regex": parse_regex_filter,
    "date": parse_date_range_filter,
    "state": parse_state_filter,
    "property": parse_property_filter,
    "cost": parse_cost_filter,
    "type": parse_type_filter,
    "provider": parse_provider_filter,
}


def register_filter_parser(kind: str, parser: FilterParser, replace: bool = False) -> None:
    """
    Register a parser for a new filter kind.

    Args:
        kind: Filter kind name used by ``parse_filter``
        parser: Callable turning an expression into a Filter
        replace: Allow overriding an existing kind

    Raises:
        ValueError: If the kind is already registered and replace is False
    """
    if kind in FILTER_PARSERS and not replace:
        raise ValueError(f"Filter parser already registered for kind: {kind}")
    FILTER_PARSERS[kind] = parser
    logger.debug(f"Registered filter parser for kind '{kind}'")


def parse_filter(kind: str, expression: Any) -> Filter:
    """Parse an expression with the parser registered for ``kind``."""
    parser = FILTER_PARSERS.get(kind)
    if parser is None:
        raise FilterParseError(
            kind,
            str(expression),
            f"unknown filter kind (available: {', '.join(sorted(FILTER_PARSERS))})",
        )
    return parser(expression)
