from __future__ import annotations

import os
from dataclasses import dataclass

from src.domain.algorithms.hfp_codecs import DEFAULT_ID_PREFIX, DEFAULT_TIMEZONE


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    return int(raw)


@dataclass(frozen=True, slots=True)
class FeedRuntimeConfig:
    """Runtime settings for the ingestion worker and the API.

    Env vars:
      - FEED_ID_PREFIX: feed prefix of routing ids (default: HSL)
      - FEED_TIMEZONE: local timezone of operating days (default: Europe/Helsinki)
      - INGEST_CONCURRENCY: messages handled at once (default: 16)
      - SCHEDULE_SOURCE: digitransit|gtfs (default: digitransit)
      - PERSISTENCE_BACKEND: dynamodb|memory (default: dynamodb); memory is
        process-local, for the worker alone or tests, and the API rejects it
    """

    id_prefix: str
    timezone: str
    ingest_concurrency: int
    schedule_source: str
    persistence_backend: str

    @staticmethod
    def from_env() -> "FeedRuntimeConfig":
        return FeedRuntimeConfig(
            id_prefix=(os.getenv("FEED_ID_PREFIX") or DEFAULT_ID_PREFIX).strip(),
            timezone=(os.getenv("FEED_TIMEZONE") or DEFAULT_TIMEZONE).strip(),
            ingest_concurrency=max(1, _env_int("INGEST_CONCURRENCY", 16)),
            schedule_source=(os.getenv("SCHEDULE_SOURCE") or "digitransit")
            .strip()
            .lower(),
            persistence_backend=(os.getenv("PERSISTENCE_BACKEND") or "dynamodb")
            .strip()
            .lower(),
        )
