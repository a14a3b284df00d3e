from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class RoutePattern:
    """An ordered stop sequence scheduled under one route + direction variant.

    `stop_ids` is append-only, in first-sighting order.
    """

    id: str
    stop_ids: tuple[str, ...] = field(default_factory=tuple)

    def has_stop(self, stop_id: str) -> bool:
        return stop_id in self.stop_ids

    def with_stop(self, stop_id: str) -> RoutePattern:
        if self.has_stop(stop_id):
            return self
        return RoutePattern(id=self.id, stop_ids=(*self.stop_ids, stop_id))
