"""Exception hierarchy for rtdb_cache.

All exceptions inherit from :class:`RTDBCacheError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`rtdb_cache.exit_codes`.  Library callers catch the specific
subclasses; the command line entry point :func:`rtdb_cache.app.main`
catches the base class and exits with its code.

Subclass hierarchy::

    RTDBCacheError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- PermissionError_    (exit 3)
    +-- NotFoundError       (exit 4)
    +-- ValidationError     (exit 5)
    +-- WriteError          (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- ConfigError         (exit 1)
    +-- StoreClosedError    (exit 1)
"""

from __future__ import annotations

from typing import Optional

from rtdb_cache.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_PERMISSION_DENIED,
    EXIT_REMOTE_ERROR,
)


class RTDBCacheError(Exception):
    """Base exception for all rtdb_cache errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`rtdb_cache.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RTDBCacheError):
    """Raised for malformed query options or command line arguments."""

    exit_code = EXIT_INVALID_USAGE


class PermissionError_(RTDBCacheError):
    """Raised when the database rejects the secret (HTTP 401).

    Named with a trailing underscore to avoid shadowing the built-in
    ``PermissionError``.
    """

    exit_code = EXIT_PERMISSION_DENIED


class NotFoundError(RTDBCacheError):
    """Raised when the database (or a requested path) does not exist."""

    exit_code = EXIT_NOT_FOUND


class ValidationError(RTDBCacheError):
    """Raised when the initial store validation returns an unexpected status.

    Args:
        message: Human-readable error description.
        body: The raw response body returned by the database.
    """

    exit_code = EXIT_REMOTE_ERROR

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body


class WriteError(RTDBCacheError):
    """Raised when a write-through ``set`` is not acknowledged by the database.

    The local cached value is never updated when this is raised.

    Args:
        message: Human-readable error description.
        status: HTTP status of the failed write, ``None`` for network errors.
        body: Raw response body, if any.
    """

    exit_code = EXIT_REMOTE_ERROR

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class ConnectionError_(RTDBCacheError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(RTDBCacheError):
    """Raised for configuration problems (missing name or secret, invalid config file)."""

    exit_code = EXIT_GENERIC_FAILURE


class StoreClosedError(RTDBCacheError):
    """Raised when a cache node is used after its store controller was released."""

    exit_code = EXIT_GENERIC_FAILURE
