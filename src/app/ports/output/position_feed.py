from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from src.domain.models import FeedMessage


class IPositionFeed(ABC):
    """Messaging port delivering raw vehicle position messages."""

    @abstractmethod
    def publish(self, topic: str, payload: Mapping[str, Any]) -> str:
        """Publish a message and return its provider message id."""

    @abstractmethod
    def consume(
        self, *, max_messages: int = 1, wait_time_s: int = 10
    ) -> list[FeedMessage]:
        """Consume up to N messages."""
