"""Pydantic models shared across rtdb_cache.

The models fall into two groups:

**Request models** -- describe a single call to the database's REST
surface: :class:`HttpMethod` and :class:`QueryOptions`.

**Configuration models** -- identify the database and tune the cache:
:class:`StoreConfig`, loaded by :mod:`rtdb_cache.config` from the config
file, environment variables, and command line flags.
"""

from __future__ import annotations

import enum
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from rtdb_cache.exceptions import InvalidUsageError


DEFAULT_TTL_MS = 300_000
"""Default time-to-live applied to every cache node, in milliseconds."""


# --- Request models ---


class HttpMethod(str, enum.Enum):
    """HTTP methods the database client issues."""

    GET = "GET"
    PUT = "PUT"

    @classmethod
    def coerce(cls, value: Union[str, "HttpMethod"]) -> "HttpMethod":
        """Accept an enum member or a case-insensitive name such as ``"Get"``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise InvalidUsageError(f"Unsupported HTTP method: {value!r}") from None


class QueryOptions(BaseModel):
    """Query-string options understood by the database REST API.

    Field names follow Python conventions; the wire names are kept as
    aliases so that mappings written either way validate::

        QueryOptions(shallow=True, timeout="3s")
        QueryOptions.model_validate({"writeSizeLimit": "small"})

    Unset fields are omitted from the query string.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    shallow: Optional[bool] = Field(
        default=None, description="Return only the keys of immediate children"
    )
    print_: Optional[Literal["pretty", "silent"]] = Field(
        default=None, alias="print", description="Response formatting"
    )
    timeout: Optional[str] = Field(
        default=None,
        pattern=r"^\d+(\.\d+)?(ms|s|min)$",
        description="Server-side read deadline, e.g. 250ms, 3s, 1min",
    )
    write_size_limit: Optional[
        Literal["tiny", "small", "medium", "large", "unlimited"]
    ] = Field(default=None, alias="writeSizeLimit")

    def to_params(self) -> dict[str, str]:
        """Return the options as wire-named query parameters.

        Booleans are rendered as ``true`` / ``false``; unset fields are dropped.
        """
        params: dict[str, str] = {}
        for key, value in self.model_dump(by_alias=True, exclude_none=True).items():
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
            else:
                params[key] = str(value)
        return params

    @classmethod
    def coerce(
        cls, options: Union["QueryOptions", Mapping[str, Any], None]
    ) -> "QueryOptions":
        """Normalise *options* into a :class:`QueryOptions` instance.

        Raises:
            InvalidUsageError: If a mapping contains unknown keys or invalid values.
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        try:
            return cls.model_validate(dict(options))
        except PydanticValidationError as exc:
            raise InvalidUsageError(f"Invalid query options: {exc}") from exc


# --- Configuration models ---


class StoreConfig(BaseModel):
    """Identity of a database and the cache settings applied to it.

    Example::

        StoreConfig(name="my-project-default-rtdb", secret="env:RTDB_SECRET")

    ``secret`` may hold the literal secret or a source descriptor that
    :func:`rtdb_cache.config.resolve_credential` understands.
    """

    name: str = Field(description="Database name, e.g. [PROJECT_ID]-default-rtdb")
    secret: str = Field(description="Database secret or a source descriptor")
    ttl_ms: int = Field(
        default=DEFAULT_TTL_MS, ge=0, description="Cache node time-to-live in milliseconds"
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Override the https://<name>.firebaseio.com base URL (emulators)",
    )
    timeout: float = Field(default=30, gt=0, description="HTTP timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
