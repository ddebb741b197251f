# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Cost estimation for collected resources.

Estimators are pluggable per provider. The inspector ships no price data
itself; callers register estimators backed by their own pricing source.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from ..config import settings
from ..models.collection import Collection
from ..models.resource import Resource, ResourceCost

logger = logging.getLogger(__name__)


class CostEstimator(ABC):
    """Estimates the monthly cost of a single resource."""

    @abstractmethod
    def estimate(self, resource: Resource) -> Optional[ResourceCost]:
        """
        Estimate the cost of a resource.

        Returns:
            ResourceCost, or None when the resource has no pricing data
        """


class FixedRateEstimator(CostEstimator):
    """
    Estimator backed by a caller-supplied flat monthly rate per resource type.

    Resource types missing from ``rates`` are left without a cost.
    """

    def __init__(self, rates: dict[str, float], currency: Optional[str] = None):
        self.rates = dict(rates)
        self.currency = currency or settings().default_currency

    def estimate(self, resource: Resource) -> Optional[ResourceCost]:
        rate = self.rates.get(resource.type)
        if rate is None:
            return None
        return ResourceCost(
            monthly_estimate=rate,
            currency=self.currency,
            breakdown={"base": rate},
        )


class EstimatorRegistry:
    """
    Routes cost estimation to the estimator registered for each provider.

    Resources whose provider has no estimator keep whatever cost they
    already carry.
    """

    def __init__(self):
        self._estimators: dict[str, CostEstimator] = {}

    def register(self, provider: str, estimator: CostEstimator) -> None:
        """Register (or replace) the estimator for a provider."""
        self._estimators[provider] = estimator
        logger.debug(f"Registered cost estimator for provider '{provider}'")

    def providers(self) -> list[str]:
        return sorted(self._estimators)

    def estimate(self, resource: Resource) -> Optional[ResourceCost]:
        """Estimate one resource; None when no estimator applies."""
        estimator = self._estimators.get(resource.provider)
        if estimator is None:
            return None
        return estimator.estimate(resource)

    def estimate_collection(self, collection: Collection, denormalize: bool = False) -> Collection:
        """
        Attach cost estimates to copies of every resource.

        A failing estimator is logged and the resource is kept with its
        existing cost; it never aborts the whole run.

        Args:
            collection: Source collection (left untouched)
            denormalize: Also write the estimate to ``properties["monthly_cost"]``
                so property filters can read it

        Returns:
            New collection with costs applied and aggregates re-derived
        """
        now = datetime.now(timezone.utc)
        estimated = []
        costed = 0

        for resource in collection:
            try:
                cost = self.estimate(resource)
            except Exception as e:
                logger.warning(
                    f"Cost estimation failed for {resource.id} ({resource.type}): {str(e)}"
                )
                cost = None

            if cost is None:
                estimated.append(resource)
                continue

            cost = cost.model_copy(update={"last_updated": now})
            update = {"cost": cost}
            if denormalize:
                update["properties"] = {**resource.properties, "monthly_cost": cost.monthly_estimate}
            estimated.append(resource.model_copy(update=update))
            costed += 1

        logger.info(f"Estimated costs for {costed} of {len(collection)} resources")
        return Collection.from_resources(
            estimated,
            timestamp=collection.metadata.timestamp,
            duplicate_policy=collection.duplicate_policy,
        )
