# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Service turning filter expressions into filters and applying them."""

import logging
from typing import Iterable, Optional, Union

from ..filters import CompositeFilter, Filter, parse_filter
from ..models.collection import Collection
from ..models.enums import LogicOperator

logger = logging.getLogger(__name__)

Expressions = Optional[Union[str, Iterable[str]]]


def _as_list(expressions: Expressions) -> list[str]:
    if expressions is None:
        return []
    if isinstance(expressions, str):
        return [expressions]
    return list(expressions)


class FilterService:
    """Builds filters from user input and narrows collections with them."""

    def build_filters(
        self,
        tags: Expressions = None,
        regex: Expressions = None,
        dates: Expressions = None,
        states: Expressions = None,
        properties: Expressions = None,
        cost: Optional[str] = None,
        types: Expressions = None,
        providers: Expressions = None,
    ) -> list[Filter]:
        """
        Parse every supplied expression into a filter.

        Each tag, regex, date, property and state expression yields its own
        filter. Types and providers are each merged into a single membership
        filter.

        Raises:
            FilterParseError: For the first malformed expression
        """
        filters: list[Filter] = []

        for expression in _as_list(tags):
            filters.append(parse_filter("tag", expression))
        for expression in _as_list(regex):
            filters.append(parse_filter("regex", expression))
        for expression in _as_list(dates):
            filters.append(parse_filter("date", expression))
        for expression in _as_list(states):
            filters.append(parse_filter("state", expression))
        for expression in _as_list(properties):
            filters.append(parse_filter("property", expression))
        if cost:
            filters.append(parse_filter("cost", cost))

        type_list = _as_list(types)
        if type_list:
            filters.append(parse_filter("type", type_list))
        provider_list = _as_list(providers)
        if provider_list:
            filters.append(parse_filter("provider", provider_list))

        return filters

    def apply_filters(
        self,
        collection: Collection,
        filters: list[Filter],
        logic: LogicOperator = LogicOperator.AND,
    ) -> Collection:
        """
        Keep the resources matching the combined filters.

        Args:
            collection: Source collection (left untouched)
            filters: Filters to combine
            logic: AND requires every filter to match, OR any of them

        Returns:
            A new collection with the snapshot timestamp kept and aggregates
            re-derived, or ``collection`` itself when there are no filters
        """
        if not filters:
            return collection

        combined = CompositeFilter(filters, logic)
        logger.info(f"Applying filters {combined.description()} to {len(collection)} resources")

        result = Collection.from_resources(
            collection.filter(combined),
            timestamp=collection.metadata.timestamp,
            duplicate_policy=collection.duplicate_policy,
        )
        logger.info(f"Filtered {len(collection)} resources down to {len(result)}")
        return result
