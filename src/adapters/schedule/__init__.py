from .digitransit_schedule_resolver import DigitransitScheduleResolver
from .gtfs_schedule_resolver import GtfsScheduleResolver

__all__ = [
    "DigitransitScheduleResolver",
    "GtfsScheduleResolver",
]
