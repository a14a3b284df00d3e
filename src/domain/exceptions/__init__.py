from .errors import (
    CongestionLoggerError,
    EntityAlreadyExistsError,
    InvalidStateError,
    MalformedPositionEventError,
    NoSuchEntityError,
    ScheduleMatchNotFoundError,
)

__all__ = [
    "CongestionLoggerError",
    "EntityAlreadyExistsError",
    "InvalidStateError",
    "MalformedPositionEventError",
    "NoSuchEntityError",
    "ScheduleMatchNotFoundError",
]
