"""Error taxonomy and fallible conversions shared by the connector."""

import json
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Tells a consumer whether an error affects the whole connection."""

    OVERALL_CONNECTION = "overall-connection"
    SPECIFIC_REQUEST = "specific-request"
    PARSING = "parsing"


class TransportErrorKind(Enum):
    CANCELED = "canceled"
    TIMEOUT = "timeout"
    OTHER = "other"


class SyncthingError(Exception):
    """Base class for connector errors."""


class ConfigInsufficient(SyncthingError):
    """Raised when the URL or the API key is missing."""

    def __init__(self, message: str = "Connection configuration is insufficient.") -> None:
        super().__init__(message)


class ParseError(SyncthingError):
    """A response body could not be decoded as JSON of the expected shape."""


class TransportError(SyncthingError):
    """A request failed before a usable response body was received."""

    def __init__(
        self,
        kind: TransportErrorKind,
        message: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.status_code = status_code

    @property
    def canceled(self) -> bool:
        return self.kind is TransportErrorKind.CANCELED


def parse_json(data: bytes | str) -> Any:
    """Decode a response body, raising ParseError instead of JSONDecodeError."""
    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(str(exc)) from exc


# Syncthing reports nanoseconds; datetime only keeps microseconds.
_FRACTION = re.compile(r"\.(\d{6})\d+")


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp; returns None when the value is unusable."""
    if not isinstance(value, str) or not value:
        return None
    text = _FRACTION.sub(r".\1", value.strip())
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    # Zero dates ("0001-01-01T00:00:00Z") mean "never".
    if parsed.year <= 1:
        return None
    return parsed
