from __future__ import annotations

from typing import Any, Iterator

from botocore.exceptions import ClientError

from src.adapters.aws import client_error_code

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


def is_conditional_check_failed(exc: ClientError) -> bool:
    return client_error_code(exc) == CONDITIONAL_CHECK_FAILED


def query_items(ddb: Any, **kwargs: Any) -> Iterator[dict[str, Any]]:
    """Yield every item of a query, following LastEvaluatedKey pages."""

    params = dict(kwargs)
    while True:
        resp = ddb.query(**params)
        yield from resp.get("Items", []) or []

        last_key = resp.get("LastEvaluatedKey")
        if not last_key:
            return
        params["ExclusiveStartKey"] = last_key
