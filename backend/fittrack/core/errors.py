"""Exception hierarchy shared by the tracking session and the activity store."""


class FitTrackError(Exception):
    """Base class for every error raised by fittrack."""


# --------- Tracking session --------- #


class SessionError(FitTrackError):
    """Tracking session errors."""


class InvalidSessionState(SessionError):
    """An operation was called in a state that does not allow it."""

    def __init__(self, operation: str, state):
        super().__init__(f"cannot {operation} while session is {state.value}")
        self.operation = operation
        self.state = state


class AlreadyTracking(InvalidSessionState):
    def __init__(self, state):
        super().__init__("start", state)


class NoRouteData(SessionError):
    """The session stopped without recording a single position fix."""


class PermissionDenied(SessionError):
    """The position source refused access to location updates."""


# --------- Activity store --------- #


class StorageError(FitTrackError):
    """Activity store errors."""


class NotInitialized(StorageError):
    def __init__(self, message: str = "Activity store not initialized. Call init() first."):
        super().__init__(message)


class StorageUnavailable(StorageError):
    """The underlying database could not be opened."""


class PersistenceError(StorageError):
    """A read or write against the database failed."""


class RouteDecodeError(PersistenceError):
    """A stored route could not be decoded."""
