"""Unit tests for the resource collection and its aggregates."""

import logging
import threading
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from cloud_inspector.exceptions import DuplicateResourceError
from cloud_inspector.models import Collection, DuplicatePolicy, Resource, ResourceCost


class TestCollectionBasics:
    """Tests for population, lookup and iteration."""

    def test_empty_collection(self):
        collection = Collection()

        assert len(collection) == 0
        assert collection.metadata.total_count == 0
        assert collection.metadata.by_type == {}
        assert collection.metadata.total_cost is None
        assert collection.metadata.timestamp.tzinfo is not None

    def test_add_indexes_and_counts(self, resource_factory):
        collection = Collection()
        resource = resource_factory("i-1", region="us-east-1", account="111")

        collection.add(resource)

        assert collection.get("i-1") is resource
        assert "i-1" in collection
        assert collection.metadata.total_count == 1
        assert collection.metadata.by_type == {"aws:ec2:instance": 1}
        assert collection.metadata.by_provider == {"aws": 1}
        assert collection.metadata.by_account == {"111": 1}
        assert collection.metadata.by_region == {"us-east-1": 1}
        assert collection.metadata.by_type_and_region == {"us-east-1": {"aws:ec2:instance": 1}}

    def test_get_unknown_returns_none(self, sample_collection):
        assert sample_collection.get("nope") is None
        assert "nope" not in sample_collection

    def test_empty_region_and_account_not_counted(self, resource_factory):
        collection = Collection()
        collection.add(resource_factory("repo-1", "github:repository"))

        assert collection.metadata.by_region == {}
        assert collection.metadata.by_account == {}
        assert collection.metadata.by_type_and_region == {}

    def test_sample_aggregates(self, sample_collection):
        meta = sample_collection.metadata

        assert meta.total_count == 6
        assert meta.by_type["aws:ec2:instance"] == 2
        assert meta.by_provider == {"aws": 4, "github": 1, "okta": 1}
        assert meta.by_region == {"us-east-1": 3, "eu-west-1": 1}
        assert meta.by_type_and_region["eu-west-1"] == {"aws:ec2:instance": 1}

    def test_cost_aggregates(self, sample_collection):
        cost = sample_collection.metadata.total_cost

        assert cost is not None
        assert cost.total == pytest.approx(200.0)
        assert cost.by_provider == {"aws": pytest.approx(200.0)}
        assert cost.by_region == {"us-east-1": pytest.approx(60.0), "eu-west-1": pytest.approx(140.0)}
        assert cost.by_tag["Environment=production"] == pytest.approx(60.0)
        assert cost.by_tag["Team=web"] == pytest.approx(60.0)
        assert cost.by_tag["Environment=staging"] == pytest.approx(140.0)

    def test_zero_cost_not_aggregated(self, resource_factory):
        collection = Collection()
        collection.add(resource_factory("i-1", cost=ResourceCost(monthly_estimate=0.0)))

        assert collection.metadata.total_cost is None

    def test_iteration_preserves_insertion_order(self, sample_collection, sample_resources):
        assert [r.id for r in sample_collection] == [r.id for r in sample_resources]
        assert sample_collection.ids() == [r.id for r in sample_resources]

    def test_filter_accepts_callable(self, sample_collection):
        result = sample_collection.filter(lambda r: r.provider == "aws")

        assert isinstance(result, list)
        assert [r.id for r in result] == ["vpc-1", "subnet-1", "i-web-1", "i-batch-1"]


class TestDuplicatePolicy:
    """Tests for each duplicate-id policy."""

    def test_replace_keeps_position_and_aggregates(self, resource_factory, caplog):
        collection = Collection(duplicate_policy=DuplicatePolicy.REPLACE)
        collection.add(resource_factory("a", region="us-east-1"))
        collection.add(resource_factory("b"))
        replacement = resource_factory("a", "aws:s3:bucket", region="eu-west-1")

        with caplog.at_level(logging.WARNING):
            collection.add(replacement)

        assert [r.id for r in collection] == ["a", "b"]
        assert collection.resources[0] is replacement
        assert collection.get("a") is replacement
        assert collection.metadata.total_count == 2
        assert collection.metadata.by_type == {"aws:ec2:instance": 1, "aws:s3:bucket": 1}
        assert collection.metadata.by_region == {"eu-west-1": 1}
        assert "Duplicate resource id a" in caplog.text

    def test_replace_subtracts_cost(self, resource_factory):
        collection = Collection()
        collection.add(resource_factory("a", cost=ResourceCost(monthly_estimate=10.0), tags={"T": "1"}))
        collection.add(resource_factory("a", cost=ResourceCost(monthly_estimate=25.0), tags={"T": "2"}))

        cost = collection.metadata.total_cost
        assert cost.total == pytest.approx(25.0)
        assert cost.by_tag == {"T=2": pytest.approx(25.0)}

    def test_replace_with_uncosted_clears_cost_summary(self, resource_factory):
        collection = Collection()
        collection.add(resource_factory("a", cost=ResourceCost(monthly_estimate=10.0)))
        collection.add(resource_factory("a"))

        assert collection.metadata.total_cost is None

    def test_keep_both_appends(self, resource_factory, caplog):
        collection = Collection(duplicate_policy=DuplicatePolicy.KEEP_BOTH)
        first = resource_factory("a")
        second = resource_factory("a", name="second")

        with caplog.at_level(logging.WARNING):
            collection.add(first)
            collection.add(second)

        assert len(collection) == 2
        assert collection.metadata.total_count == 2
        assert collection.get("a") is second
        assert collection.ids() == ["a"]
        assert "keeping both" in caplog.text

    def test_reject_raises(self, resource_factory):
        collection = Collection(duplicate_policy=DuplicatePolicy.REJECT)
        collection.add(resource_factory("a"))

        with pytest.raises(DuplicateResourceError) as exc_info:
            collection.add(resource_factory("a"))

        assert exc_info.value.resource_id == "a"
        assert len(collection) == 1
        assert collection.metadata.total_count == 1


class TestConcurrentAdd:
    def test_parallel_adds_are_all_counted(self, resource_factory):
        collection = Collection()

        def worker(offset):
            for i in range(200):
                collection.add(resource_factory(f"r-{offset}-{i}", region="us-east-1"))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(collection) == 800
        assert collection.metadata.total_count == 800
        assert collection.metadata.by_region == {"us-east-1": 800}


class TestSerialization:
    def test_round_trip_keeps_timestamp_and_rebuilds_aggregates(self, sample_collection):
        data = sample_collection.to_dict()
        restored = Collection.from_dict(data)

        assert restored.metadata.timestamp == sample_collection.metadata.timestamp
        assert restored.ids() == sample_collection.ids()
        assert restored.metadata.by_type == sample_collection.metadata.by_type
        assert restored.metadata.total_cost.total == pytest.approx(200.0)
        assert restored.get("i-web-1").relationships[0].type_name == "attached_to"

    def test_from_dict_ignores_stored_aggregates(self, resource_factory):
        data = {
            "resources": [resource_factory("a").to_dict()],
            "metadata": {"timestamp": "2024-01-01T00:00:00Z", "total_count": 99},
        }

        restored = Collection.from_dict(data)

        assert restored.metadata.total_count == 1
        assert restored.metadata.timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_to_dict_strips_raw_data(self, resource_factory):
        collection = Collection.from_resources([resource_factory("a", raw_data={"secret": 1})])

        assert "raw_data" not in collection.to_dict()["resources"][0]
        assert collection.to_dict(include_raw=True)["resources"][0]["raw_data"] == {"secret": 1}

    def test_from_dict_invalid_resource(self):
        with pytest.raises(ValidationError):
            Collection.from_dict({"resources": [{"name": "missing id and type"}]})

    def test_unknown_relationship_type_survives(self):
        data = {
            "resources": [
                {
                    "id": "a",
                    "type": "custom:thing",
                    "relationships": [{"type": "mirrors", "target_id": "b"}],
                }
            ]
        }

        restored = Collection.from_dict(data)

        assert restored.get("a").relationships[0].type_name == "mirrors"


class TestResourceModel:
    def test_defaults(self):
        resource = Resource(id="x", type="aws:s3:bucket")

        assert resource.tags == {}
        assert resource.properties == {}
        assert resource.relationships == []
        assert resource.cost is None
        assert resource.monthly_cost == 0.0

    def test_negative_estimate_is_a_credit(self, resource_factory):
        credit = resource_factory("credit-1", cost=ResourceCost(monthly_estimate=-25.0))
        collection = Collection.from_resources([credit, resource_factory("vm-1", cost=ResourceCost(monthly_estimate=10.0))])

        assert credit.monthly_cost == -25.0
        assert collection.metadata.total_cost.total == 10.0

    def test_missing_estimate_rejected(self):
        with pytest.raises(ValidationError):
            ResourceCost()

    def test_tag_pairs(self, resource_factory):
        resource = resource_factory("x", tags={"Env": "prod", "Team": "a"})

        assert resource.tag_pairs() == ["Env=prod", "Team=a"]
