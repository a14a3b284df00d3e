class CongestionLoggerError(Exception):
    """Base exception for ingestion and estimation failures."""


class NoSuchEntityError(CongestionLoggerError):
    """Raised when a lookup by id finds nothing."""


class ScheduleMatchNotFoundError(NoSuchEntityError):
    """Raised when no scheduled trip matches a realtime departure."""


class EntityAlreadyExistsError(CongestionLoggerError):
    """Raised when creating an entity whose id is already taken."""


class InvalidStateError(CongestionLoggerError):
    """Raised when stored data cannot yield a meaningful answer."""


class MalformedPositionEventError(CongestionLoggerError):
    """Raised when a feed topic or payload cannot be decoded."""
