from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (-90.0 <= self.lat <= 90.0):
            raise ValueError(f"Invalid latitude: {self.lat}")
        if not (-180.0 <= self.lon <= 180.0):
            raise ValueError(f"Invalid longitude: {self.lon}")


@dataclass(frozen=True, slots=True)
class Stop:
    """A stop keyed by its canonical (routing API) id.

    Name and location are owned by the persistence layer; ingestion only ever
    creates bare stops.
    """

    id: str
    name: str | None = None
    location: GeoPoint | None = None
