"""Unit tests for cost estimation."""

import logging
from typing import Optional

import pytest

from cloud_inspector.filters import CostFilter, PropertyFilter
from cloud_inspector.models import CompareOperator, Resource, ResourceCost
from cloud_inspector.services.cost_service import CostEstimator, EstimatorRegistry, FixedRateEstimator


class FailingEstimator(CostEstimator):
    def estimate(self, resource: Resource) -> Optional[ResourceCost]:
        raise RuntimeError("pricing API unavailable")


@pytest.fixture
def registry():
    registry = EstimatorRegistry()
    registry.register(
        "aws",
        FixedRateEstimator({"aws:ec2:vpc": 0.0, "aws:ec2:instance": 75.0}),
    )
    return registry


class TestEstimatorRegistry:
    def test_estimate_routes_by_provider(self, registry, resource_factory):
        assert registry.estimate(resource_factory("i-1")).monthly_estimate == 75.0
        assert registry.estimate(resource_factory("repo", "github:repository")) is None
        assert registry.estimate(resource_factory("b", "aws:s3:bucket")) is None

    def test_providers(self, registry):
        registry.register("gcp", FixedRateEstimator({}))

        assert registry.providers() == ["aws", "gcp"]

    def test_estimate_collection_returns_new_collection(self, registry, sample_collection):
        estimated = registry.estimate_collection(sample_collection)

        assert estimated is not sample_collection
        assert estimated.ids() == sample_collection.ids()
        assert estimated.metadata.timestamp == sample_collection.metadata.timestamp
        assert estimated.get("i-batch-1").cost.monthly_estimate == 75.0
        assert sample_collection.get("i-batch-1").cost.monthly_estimate == 140.0
        assert estimated.metadata.total_cost.total == pytest.approx(150.0)

    def test_unpriced_resources_keep_existing_cost(self, sample_collection):
        registry = EstimatorRegistry()
        registry.register("okta", FixedRateEstimator({"okta:user": 2.0}))

        estimated = registry.estimate_collection(sample_collection)

        assert estimated.get("i-web-1").cost.monthly_estimate == 60.0
        assert estimated.get("user-alice").cost.monthly_estimate == 2.0
        assert estimated.metadata.total_cost.total == pytest.approx(202.0)

    def test_zero_rate_not_aggregated(self, registry, sample_collection):
        estimated = registry.estimate_collection(sample_collection)

        assert estimated.get("vpc-1").cost.monthly_estimate == 0.0
        assert "aws:ec2:vpc" not in estimated.metadata.total_cost.by_type

    def test_denormalize_feeds_property_filters(self, registry, sample_collection):
        estimated = registry.estimate_collection(sample_collection, denormalize=True)

        assert estimated.get("i-web-1").properties["monthly_cost"] == 75.0
        assert "monthly_cost" not in sample_collection.get("i-web-1").properties
        matches = estimated.filter(PropertyFilter("monthly_cost", CompareOperator.GREATER_THAN, 50))
        assert [r.id for r in matches] == ["i-web-1", "i-batch-1"]
        assert [r.id for r in estimated.filter(CostFilter(min_cost=70))] == ["i-web-1", "i-batch-1"]

    def test_failing_estimator_is_logged_and_skipped(self, sample_collection, caplog):
        registry = EstimatorRegistry()
        registry.register("aws", FailingEstimator())

        with caplog.at_level(logging.WARNING):
            estimated = registry.estimate_collection(sample_collection)

        assert len(estimated) == len(sample_collection)
        assert estimated.get("i-web-1").cost.monthly_estimate == 60.0
        assert "pricing API unavailable" in caplog.text


class TestCurrency:
    @pytest.fixture
    def euro(self, monkeypatch):
        from cloud_inspector.config import reset_settings

        monkeypatch.setenv("DEFAULT_CURRENCY", "EUR")
        reset_settings()

    def test_default_is_usd(self, resource_factory):
        assert ResourceCost(monthly_estimate=1.0).currency == "USD"
        assert FixedRateEstimator({"aws:ec2:instance": 5.0}).estimate(resource_factory("i-1")).currency == "USD"

    def test_cost_currency_follows_setting(self, euro):
        assert ResourceCost(monthly_estimate=1.0).currency == "EUR"

    def test_estimator_currency_follows_setting(self, euro, resource_factory):
        cost = FixedRateEstimator({"aws:ec2:instance": 5.0}).estimate(resource_factory("i-1"))

        assert cost.currency == "EUR"

    def test_explicit_currency_wins(self, euro, resource_factory):
        cost = FixedRateEstimator({"aws:ec2:instance": 5.0}, currency="GBP").estimate(resource_factory("i-1"))

        assert cost.currency == "GBP"
        assert ResourceCost(monthly_estimate=1.0, currency="JPY").currency == "JPY"

    def test_collection_total_uses_cost_currency(self, euro, resource_factory):
        from cloud_inspector.models import Collection

        collection = Collection.from_resources(
            [resource_factory("i-1", cost=ResourceCost(monthly_estimate=3.0))]
        )

        assert collection.metadata.total_cost.currency == "EUR"
