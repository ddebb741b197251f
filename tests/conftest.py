"""Pytest configuration and shared fixtures."""

import json
from datetime import datetime, timezone

import pytest
from hypothesis import HealthCheck, settings

from cloud_inspector.config import reset_settings
from cloud_inspector.models import Collection, Relationship, RelationType, Resource, ResourceCost

# fresh_settings is autouse and function scoped
settings.register_profile("inspector", suppress_health_check=[HealthCheck.function_scoped_fixture])
settings.load_profile("inspector")


@pytest.fixture
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


# =============================================================================
# Environment and Configuration Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings around every test so env changes take effect."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def test_env(monkeypatch):
    """Set up test environment variables."""
    test_vars = {
        "AWS_REGION": "us-east-1",
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
        "CLOUDWATCH_ENABLED": "false",
    }
    for key, value in test_vars.items():
        monkeypatch.setenv(key, value)
    return test_vars


# =============================================================================
# Test Data Fixtures
# =============================================================================

def make_resource(resource_id: str, resource_type: str = "aws:ec2:instance", **kwargs) -> Resource:
    """Build a resource with sensible defaults for tests."""
    kwargs.setdefault("name", resource_id)
    kwargs.setdefault("provider", resource_type.split(":", 1)[0])
    return Resource(id=resource_id, type=resource_type, **kwargs)


@pytest.fixture
def resource_factory():
    """Expose ``make_resource`` to test modules."""
    return make_resource


@pytest.fixture
def sample_resources():
    """A small multi-provider estate with relationships, costs and states."""
    return [
        make_resource(
            "vpc-1",
            "aws:ec2:vpc",
            name="main-vpc",
            account="123456789012",
            region="us-east-1",
            tags={"Environment": "production", "Team": "platform"},
            properties={"cidr_block": "10.0.0.0/16", "state": "available"},
            relationships=[
                Relationship(type=RelationType.CONTAINS, target_id="subnet-1", target_type="aws:ec2:subnet"),
            ],
            created_at=datetime(2024, 1, 10, 8, 0, tzinfo=timezone.utc),
        ),
        make_resource(
            "subnet-1",
            "aws:ec2:subnet",
            name="private-a",
            account="123456789012",
            region="us-east-1",
            tags={"Environment": "production"},
            properties={"cidr_block": "10.0.1.0/24", "state": "available"},
            relationships=[
                Relationship(type=RelationType.BELONGS_TO, target_id="vpc-1", target_type="aws:ec2:vpc"),
            ],
            created_at=datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc),
        ),
        make_resource(
            "i-web-1",
            "aws:ec2:instance",
            name="web-server-1",
            account="123456789012",
            region="us-east-1",
            tags={"Environment": "production", "Team": "web"},
            properties={
                "instance_type": "t3.large",
                "state": "running",
                "cpu_count": 2,
                "network": {"vpc_id": "vpc-1", "public": True},
            },
            relationships=[
                Relationship(type=RelationType.ATTACHED_TO, target_id="subnet-1", target_type="aws:ec2:subnet"),
                Relationship(type=RelationType.DEPENDS_ON, target_id="db-missing", target_type="aws:rds:instance"),
            ],
            cost=ResourceCost(monthly_estimate=60.0, breakdown={"compute": 60.0}),
            created_at=datetime(2024, 3, 15, 12, 30, tzinfo=timezone.utc),
            updated_at=datetime(2024, 6, 1, 0, 0, tzinfo=timezone.utc),
        ),
        make_resource(
            "i-batch-1",
            "aws:ec2:instance",
            name="batch-worker",
            account="123456789012",
            region="eu-west-1",
            tags={"Environment": "staging"},
            properties={"instance_type": "c5.xlarge", "state": "stopped", "cpu_count": 4},
            cost=ResourceCost(monthly_estimate=140.0),
            created_at=datetime(2024, 5, 2, 0, 0, tzinfo=timezone.utc),
        ),
        make_resource(
            "repo-api",
            "github:repository",
            name="api-service",
            account="acme",
            properties={"visibility": "private", "archived": False, "stars": 42},
        ),
        make_resource(
            "user-alice",
            "okta:user",
            name="alice",
            account="acme.okta.com",
            properties={"status": "ACTIVE", "logins_count": 150},
        ),
    ]


@pytest.fixture
def sample_collection(sample_resources):
    """Collection holding the sample resources."""
    return Collection.from_resources(
        sample_resources,
        timestamp=datetime(2024, 7, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def snapshot_file(tmp_path, sample_collection):
    """Sample collection written as a JSON snapshot; returns its path."""
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(sample_collection.to_dict()), encoding="utf-8")
    return path


# =============================================================================
# Pytest Hooks for Test Reporting
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "property: marks tests as property-based tests"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "property" in str(item.fspath):
            item.add_marker(pytest.mark.property)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def pytest_sessionstart(session):
    """Print test session information."""
    print("\n" + "=" * 70)
    print("Cloud Resource Inspector - Test Suite")
    print("=" * 70)


def pytest_sessionfinish(session, exitstatus):
    """Print test session summary."""
    print("\n" + "=" * 70)
    if exitstatus == 0:
        print("PASS: All tests passed!")
    else:
        print(f"FAIL: Tests failed with exit status: {exitstatus}")
    print("=" * 70)
