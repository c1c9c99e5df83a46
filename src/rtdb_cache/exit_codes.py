"""Numeric process exit codes used by the ``rtdb-cache`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~rtdb_cache.exceptions.RTDBCacheError` subclass.
Shell wrappers can inspect the exit code to tell a missing database from
a rejected secret without parsing stderr.

Example::

    $ rtdb-cache get users/steve
    $ echo $?
    4   # EXIT_NOT_FOUND -- nothing stored at that path
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or query options."""

EXIT_PERMISSION_DENIED = 3
"""The database rejected the secret (HTTP 401)."""

EXIT_NOT_FOUND = 4
"""The database or path does not exist (HTTP 404)."""

EXIT_REMOTE_ERROR = 5
"""The database answered with an unexpected status during validation or a write."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
