from __future__ import annotations

from functools import lru_cache

from src.adapters.container import (
    Repositories,
    build_congestion_rate_service,
    build_repositories,
)
from src.app.services.congestion_rate_service import CongestionRateService
from src.config import FeedRuntimeConfig


@lru_cache(maxsize=1)
def get_repositories() -> Repositories:
    config = FeedRuntimeConfig.from_env()
    if config.persistence_backend == "memory":
        # The worker fills its own process-local store; the API would never see it.
        raise ValueError(
            "PERSISTENCE_BACKEND=memory is process-local; "
            "the API needs a shared store (dynamodb)"
        )
    return build_repositories(config)


def get_congestion_rate_service() -> CongestionRateService:
    return build_congestion_rate_service(get_repositories())
