from __future__ import annotations

import os
import urllib.request
from typing import Any
from uuid import uuid4

import pytest

from src.adapters.aws import dynamodb_client, sqs_client

TABLE_PREFIX = "congestion-test"


def _localstack_healthy(endpoint_url: str) -> bool:
    url = endpoint_url.rstrip("/") + "/_localstack/health"
    try:
        with urllib.request.urlopen(url, timeout=1.5) as resp:  # nosec B310
            return 200 <= resp.status < 300
    except Exception:
        return False


@pytest.fixture(scope="session", autouse=True)
def localstack_env() -> None:
    """Point boto3 at LocalStack unless the environment already says otherwise."""

    os.environ.setdefault("USE_LOCALSTACK", "true")
    os.environ.setdefault("ENDPOINT_URL", "http://localhost:4566")
    os.environ.setdefault(
        "LOCALSTACK_ENDPOINT_URL",
        os.environ.get("ENDPOINT_URL", "http://localhost:4566"),
    )
    os.environ.setdefault("AWS_REGION", "eu-north-1")

    # boto3 requires some credentials to be present, even for LocalStack.
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")


@pytest.fixture(scope="session")
def require_localstack(localstack_env: None) -> str:
    endpoint_url = os.environ.get(
        "ENDPOINT_URL",
        os.environ.get("LOCALSTACK_ENDPOINT_URL", "http://localhost:4566"),
    )
    if not _localstack_healthy(endpoint_url):
        msg = f"LocalStack not reachable at {endpoint_url}"

        # CI starts LocalStack, so a miss there is a real failure.
        if (
            os.getenv("CI")
            or os.getenv("GITHUB_ACTIONS")
            or os.getenv("REQUIRE_LOCALSTACK")
        ):
            pytest.fail(msg, pytrace=False)

        pytest.skip(f"{msg}; skipping integration tests")
    return endpoint_url


def _ensure_table(
    name: str,
    *,
    keys: list[tuple[str, str]],
    index: tuple[str, str] | None = None,
) -> None:
    ddb = dynamodb_client()
    if name in ddb.list_tables().get("TableNames", []):
        return

    attributes = {attr for attr, _ in keys}
    if index is not None:
        attributes.add(index[1])

    params: dict[str, Any] = {
        "TableName": name,
        "BillingMode": "PAY_PER_REQUEST",
        "AttributeDefinitions": [
            {"AttributeName": a, "AttributeType": "S"} for a in sorted(attributes)
        ],
        "KeySchema": [{"AttributeName": a, "KeyType": t} for a, t in keys],
    }
    if index is not None:
        params["GlobalSecondaryIndexes"] = [
            {
                "IndexName": index[0],
                "KeySchema": [{"AttributeName": index[1], "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
        ]
    ddb.create_table(**params)
    ddb.get_waiter("table_exists").wait(TableName=name)


@pytest.fixture(scope="session")
def dynamodb_tables(require_localstack: str) -> None:
    """Create the four entity tables and point the repositories at them."""

    os.environ["DDB_ROUTE_PATTERNS_TABLE"] = f"{TABLE_PREFIX}-route-patterns"
    os.environ["DDB_STOPS_TABLE"] = f"{TABLE_PREFIX}-stops"
    os.environ["DDB_TRIPS_TABLE"] = f"{TABLE_PREFIX}-trips"
    os.environ["DDB_TRIP_STOPS_TABLE"] = f"{TABLE_PREFIX}-trip-stops"
    os.environ["DDB_TRIPS_BY_PATTERN_INDEX"] = "route_pattern_id-index"

    _ensure_table(f"{TABLE_PREFIX}-route-patterns", keys=[("id", "HASH")])
    _ensure_table(f"{TABLE_PREFIX}-stops", keys=[("id", "HASH")])
    _ensure_table(
        f"{TABLE_PREFIX}-trips",
        keys=[("id", "HASH")],
        index=("route_pattern_id-index", "route_pattern_id"),
    )
    _ensure_table(
        f"{TABLE_PREFIX}-trip-stops",
        keys=[("trip_id", "HASH"), ("stop_seen_at", "RANGE")],
    )


@pytest.fixture()
def position_queue_url(require_localstack: str) -> str:
    name = f"{TABLE_PREFIX}-positions-{uuid4().hex[:8]}"
    return sqs_client().create_queue(QueueName=name)["QueueUrl"]
