from __future__ import annotations

from typing import Iterable, Sequence

from src.domain.models import TripStop


def dwell_duration_s(
    observations: Iterable[TripStop], *, departed: bool = False
) -> float | None:
    """Dwell seconds of a single trip at a single stop.

    Uses the most recent doors-open run that was followed by a doors-closed
    sighting: the interval from the first open sighting of that run to the
    first closed sighting after it. Once the trip has `departed`, a run still
    open at the latest sighting ends at its last open sighting.

    Returns None when there are no sightings or the doors are still open at
    a stop the trip has not left, and 0.0 when the doors were never seen open.
    """

    ordered = sorted(observations, key=lambda o: o.seen_at)
    if not ordered:
        return None

    dwell: float | None = 0.0
    opened_at = None
    for obs in ordered:
        if obs.doors_open:
            if opened_at is None:
                opened_at = obs.seen_at
        elif opened_at is not None:
            dwell = (obs.seen_at - opened_at).total_seconds()
            opened_at = None

    if opened_at is not None:
        if not departed:
            return None
        # The closing heartbeat never arrived; the vehicle has moved on.
        return (ordered[-1].seen_at - opened_at).total_seconds()
    return dwell


def has_departed(observations: Iterable[TripStop], stop_id: str) -> bool:
    """True when another stop was sighted after the latest sighting at `stop_id`."""

    last_at_stop = None
    last_elsewhere = None
    for obs in observations:
        if obs.stop_id == stop_id:
            if last_at_stop is None or obs.seen_at > last_at_stop:
                last_at_stop = obs.seen_at
        elif last_elsewhere is None or obs.seen_at > last_elsewhere:
            last_elsewhere = obs.seen_at

    if last_at_stop is None or last_elsewhere is None:
        return False
    return last_elsewhere > last_at_stop


def visited_stop_ids(observations: Sequence[TripStop]) -> list[str]:
    """Distinct stop ids in first-sighting order, excluding the current stop.

    The latest distinct stop is the one the vehicle is at or heading to, so it
    has not been visited yet.
    """

    first_seen: dict[str, TripStop] = {}
    for obs in sorted(observations, key=lambda o: o.seen_at):
        first_seen.setdefault(obs.stop_id, obs)

    ordered = list(first_seen)
    return ordered[:-1]
