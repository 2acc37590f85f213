"""Error taxonomy for the player record service."""

from enum import StrEnum


class ErrorKind(StrEnum):
    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


class PlayerServiceError(Exception):
    """Base class for failures surfaced to callers of PlayerService.

    The message is safe to show to end users verbatim.
    """

    kind: ErrorKind = ErrorKind.UNAVAILABLE


class InvalidInputError(PlayerServiceError):
    """Missing or malformed request fields. Retrying the same request will not help."""

    kind = ErrorKind.INVALID_INPUT


class ConflictError(PlayerServiceError):
    """The handle is already registered."""

    kind = ErrorKind.CONFLICT


class UnauthorizedError(PlayerServiceError):
    """Unknown handle/id or wrong credential (deliberately indistinguishable)."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class NotFoundError(PlayerServiceError):
    """The record vanished after the caller authenticated (e.g. a concurrent delete)."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Player not found") -> None:
        super().__init__(message)


class UnavailableError(PlayerServiceError):
    """The record store failed; details are logged server-side only."""

    kind = ErrorKind.UNAVAILABLE

    def __init__(self, message: str = "Player storage is unavailable") -> None:
        super().__init__(message)
