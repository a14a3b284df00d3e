from __future__ import annotations

import asyncio
import logging
import os

from src.adapters.container import build_ingestion_service, build_repositories
from src.adapters.messaging.sqs_position_feed import SQSPositionFeed
from src.app.ports.output import IPositionFeed
from src.app.services.position_ingestion_service import PositionIngestionService
from src.config import FeedRuntimeConfig
from src.domain.models import FeedMessage

logger = logging.getLogger(__name__)


async def ingest_batch(
    service: PositionIngestionService,
    messages: list[FeedMessage],
    semaphore: asyncio.Semaphore,
) -> int:
    """Handle messages concurrently and return how many were recorded."""

    async def _one(message: FeedMessage) -> bool:
        async with semaphore:
            return await service.handle_message(message) is not None

    results = await asyncio.gather(*(_one(m) for m in messages))
    return sum(1 for recorded in results if recorded)


def _log_batch_failure(task: asyncio.Task[int]) -> None:
    if task.cancelled() or task.exception() is None:
        return
    logger.error("Position batch failed", exc_info=task.exception())


async def run(
    feed: IPositionFeed,
    service: PositionIngestionService,
    *,
    concurrency: int,
    loop: bool = True,
    batch_size: int = 10,
    wait_time_s: int = 10,
) -> None:
    semaphore = asyncio.Semaphore(concurrency)
    pending: set[asyncio.Task[int]] = set()

    while True:
        messages = await asyncio.to_thread(
            feed.consume, max_messages=batch_size, wait_time_s=wait_time_s
        )
        if not messages:
            if not loop:
                break
            await asyncio.sleep(0.2)
            continue

        # Keep polling while earlier batches are still being handled.
        task = asyncio.create_task(ingest_batch(service, messages, semaphore))
        pending.add(task)
        task.add_done_callback(pending.discard)
        task.add_done_callback(_log_batch_failure)

        if len(pending) >= concurrency:
            await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)

    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    config = FeedRuntimeConfig.from_env()
    service = build_ingestion_service(config, build_repositories(config))

    logger.info(
        "Starting position ingestion (schedule=%s, persistence=%s)",
        config.schedule_source,
        config.persistence_backend,
    )
    asyncio.run(
        run(
            SQSPositionFeed(),
            service,
            concurrency=config.ingest_concurrency,
            loop=os.getenv("WORKER_LOOP", "1").strip().lower()
            not in {"0", "false", "no"},
            batch_size=int(os.getenv("WORKER_BATCH_SIZE") or 10),
            wait_time_s=int(os.getenv("WORKER_WAIT_TIME_S") or 10),
        )
    )


if __name__ == "__main__":
    main()
