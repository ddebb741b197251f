"""Resource filters, composition and expression parsers."""

from .base import CompositeFilter, Filter
from .parser import (
    FILTER_PARSERS,
    PROPERTY_OPERATORS,
    parse_cost_filter,
    parse_date_range_filter,
    parse_filter,
    parse_property_filter,
    parse_provider_filter,
    parse_regex_filter,
    parse_state_filter,
    parse_tag_filter,
    parse_type_filter,
    parse_value,
    register_filter_parser,
)
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

__all__ = [
    "Filter",
    "CompositeFilter",
    "TagFilter",
    "RegexFilter",
    "DateRangeFilter",
    "StateFilter",
    "PropertyFilter",
    "CostFilter",
    "TypeFilter",
    "ProviderFilter",
    "FILTER_PARSERS",
    "PROPERTY_OPERATORS",
    "parse_filter",
    "parse_tag_filter",
    "parse_regex_filter",
    "parse_date_range_filter",
    "parse_state_filter",
    "parse_property_filter",
    "parse_cost_filter",
    "parse_type_filter",
    "parse_provider_filter",
    "parse_value",
    "register_filter_parser",
]
