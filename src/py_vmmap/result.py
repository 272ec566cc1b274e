"""Result values: success payload or typed error, never both.

Reading a memory map fails in ordinary, expected ways: the process has
exited, we lack the rights to look at it, or the platform has no way to
answer at all.  Those outcomes are returned, not raised, so callers can
branch on *which* failure happened:

    result = parser.parse_process(pid)
    if result.error is ErrorCode.PERMISSION_DENIED:
        ...

Asking an error result for its payload is different: that is a bug in
the caller, so it raises ``ResultError`` instead of quietly returning
a default.
"""

from collections.abc import Callable
from enum import IntEnum


class ErrorCode(IntEnum):
    """Closed set of outcomes for a memory-map operation."""

    SUCCESS = 0
    PROCESS_NOT_FOUND = 1
    PERMISSION_DENIED = 2
    FILE_NOT_FOUND = 3
    PARSE_ERROR = 4
    PLATFORM_NOT_SUPPORTED = 5
    UNKNOWN_ERROR = 6


_ERROR_STRINGS: dict[ErrorCode, str] = {
    ErrorCode.SUCCESS: "Success",
    ErrorCode.PROCESS_NOT_FOUND: "Process not found",
    ErrorCode.PERMISSION_DENIED: "Permission denied",
    ErrorCode.FILE_NOT_FOUND: "File not found",
    ErrorCode.PARSE_ERROR: "Parse error",
    ErrorCode.PLATFORM_NOT_SUPPORTED: "Platform not supported",
    ErrorCode.UNKNOWN_ERROR: "Unknown error",
}


def error_string(code: ErrorCode) -> str:
    """Return the short, stable phrase for an error code."""
    return _ERROR_STRINGS.get(code, "Unknown error")


class ResultError(RuntimeError):
    """Raise when the payload of a failed result is read."""


class Result[T]:
    """Either a successful payload or an error code with a message.

    Build one with ``Result.ok(value)`` or ``Result.fail(code, message)``.
    """

    __slots__ = ("_error", "_message", "_value")

    def __init__(self, *, value: T | None, error: ErrorCode, message: str) -> None:
        """Store the state verbatim; use the ``ok``/``fail`` constructors."""
        self._value = value
        self._error = error
        self._message = message

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        """Return a successful result owning *value*."""
        return cls(value=value, error=ErrorCode.SUCCESS, message="")

    @classmethod
    def fail(cls, error: ErrorCode, message: str = "") -> "Result[T]":
        """Return an error result.

        Raises:
            ValueError: If *error* is ``SUCCESS``.

        """
        if error is ErrorCode.SUCCESS:
            msg = "A failed result needs an error code other than SUCCESS"
            raise ValueError(msg)
        return cls(value=None, error=error, message=message)

    @property
    def is_success(self) -> bool:
        """Return True if this result carries a payload."""
        return self._error is ErrorCode.SUCCESS

    @property
    def has_error(self) -> bool:
        """Return True if this result carries an error."""
        return self._error is not ErrorCode.SUCCESS

    @property
    def error(self) -> ErrorCode:
        """Return the error code (``SUCCESS`` for a successful result)."""
        return self._error

    @property
    def error_message(self) -> str:
        """Return the error message (empty for a successful result)."""
        return self._message

    @property
    def value(self) -> T:
        """Return the payload.

        Raises:
            ResultError: If this is an error result.

        """
        if self.has_error:
            msg = f"Attempting to get value from failed result: {self._message}"
            raise ResultError(msg)
        return self._value  # type: ignore[return-value]

    def value_or(self, default: T) -> T:
        """Return the payload, or *default* for an error result."""
        return self._value if self.is_success else default  # type: ignore[return-value]

    def map[U](self, func: Callable[[T], U]) -> "Result[U]":
        """Apply *func* to a success payload; pass errors through unchanged."""
        if self.has_error:
            return Result.fail(self._error, self._message)
        return Result.ok(func(self._value))  # type: ignore[arg-type]

    def __repr__(self) -> str:
        """Show the state for debugging."""
        if self.is_success:
            return f"Result.ok({self._value!r})"
        return f"Result.fail({self._error.name}, {self._message!r})"
