from __future__ import annotations

from typing import Sequence

from src.domain.exceptions import InvalidStateError
from src.domain.models import LoadDurationSample


def recency_weight(idx: int, count: int) -> float:
    """Weight of the idx-th of `count` chronologically ordered stops.

    The latest stop weighs 1, the one before 1/2, then 1/3 and so on: the
    relevance of a stop decays with the rate 1/x the further into the past it
    goes.
    """

    if not 0 <= idx < count:
        raise IndexError(f"Stop index {idx} out of range for {count} stops")
    return 1.0 / (count - idx)


def weighted_congestion_rate(samples: Sequence[LoadDurationSample]) -> float:
    """Ratio of recency-weighted actual to recency-weighted average dwell.

    Samples must be ordered from the first visited stop to the latest one.
    Above 1 the trip dwells longer than usual, below 1 shorter.
    """

    count = len(samples)
    weighted_actual = 0.0
    weighted_average = 0.0
    for idx, sample in enumerate(samples):
        weight = recency_weight(idx, count)
        weighted_actual += (sample.actual_s or 0.0) * weight
        weighted_average += (sample.average_s or 0.0) * weight

    if not weighted_average:
        raise InvalidStateError(
            "Weighted average load duration for the trip doesn't exist, "
            "so the congestion rate cannot be calculated."
        )

    return weighted_actual / weighted_average
