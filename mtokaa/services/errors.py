"""Location acquisition errors."""


class LocationError(RuntimeError):
    """Base class for location failures."""


class PermissionDenied(LocationError):
    """The user declined to share a location."""


class PositionUnavailable(LocationError):
    """The platform could not resolve a position."""


class Timeout(LocationError):
    """No position arrived within the configured window."""


class StorageFailure(LocationError):
    """The durable location cache could not be read or written."""


class RequestSuperseded(LocationError):
    """A newer request for the same user replaced this pending one."""
