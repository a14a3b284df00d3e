from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping

from botocore.exceptions import ClientError

from src.adapters.aws import client_error_code, sqs_client
from src.app.ports.output import IPositionFeed
from src.domain.models import FeedMessage

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SQSPositionFeed(IPositionFeed):
    """Vehicle positions bridged from the MQTT broker into SQS.

    Each message body is JSON: {"topic": "/hfp/v2/...", "payload": {...}}.
    The payload may also arrive as a JSON string.

    Env vars:
      - SQS_QUEUE_URL
      - ENDPOINT_URL (preferred for LocalStack)
      - USE_LOCALSTACK, LOCALSTACK_ENDPOINT_URL, AWS_REGION
    """

    queue_url: str | None = None

    def _queue_url(self) -> str:
        value = self.queue_url or os.getenv("SQS_QUEUE_URL")
        if not value:
            raise RuntimeError("Missing SQS_QUEUE_URL")
        return value

    def publish(self, topic: str, payload: Mapping[str, Any]) -> str:
        sqs = sqs_client()
        resp = sqs.send_message(
            QueueUrl=self._queue_url(),
            MessageBody=json.dumps({"topic": topic, "payload": dict(payload)}),
        )
        return str(resp.get("MessageId", ""))

    def consume(
        self, *, max_messages: int = 1, wait_time_s: int = 10
    ) -> list[FeedMessage]:
        sqs = sqs_client()

        try:
            resp = sqs.receive_message(
                QueueUrl=self._queue_url(),
                MaxNumberOfMessages=max(1, min(10, int(max_messages))),
                WaitTimeSeconds=max(0, min(20, int(wait_time_s))),
            )
        except ClientError as exc:
            # LocalStack race: worker may start polling before the queue exists.
            if client_error_code(exc) in {
                "AWS.SimpleQueueService.NonExistentQueue",
                "QueueDoesNotExist",
            }:
                return []
            raise

        out: list[FeedMessage] = []
        for msg in resp.get("Messages", []) or []:
            receipt = msg.get("ReceiptHandle")
            if receipt:
                # At-most-once: the feed's heartbeat cadence replaces lost messages.
                sqs.delete_message(QueueUrl=self._queue_url(), ReceiptHandle=receipt)

            decoded = _decode_body(msg.get("Body"))
            if decoded is None:
                logger.warning("Skipping undecodable feed message %s", msg.get("MessageId"))
                continue
            out.append(decoded)

        return out


def _decode_body(raw_body: str | None) -> FeedMessage | None:
    if raw_body is None:
        return None
    try:
        body = json.loads(raw_body)
    except json.JSONDecodeError:
        return None
    if not isinstance(body, dict) or not isinstance(body.get("topic"), str):
        return None

    payload = body.get("payload")
    if not isinstance(payload, (dict, str)):
        return None
    return FeedMessage(topic=body["topic"], payload=payload)
