"""HTTP client for a single Syncthing instance."""

import asyncio
import logging
import ssl
from dataclasses import dataclass
from typing import Any

import httpx

from syncthing_connector.errors import (
    TransportError,
    TransportErrorKind,
    parse_json,
)
from syncthing_connector.tls import ExpectedTlsError, build_ssl_context

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
# The daemon holds an event request for up to 60 s before answering "[]".
EVENTS_TIMEOUT = 75.0


@dataclass
class Reply:
    """Outcome of a finished request handle."""

    body: bytes = b""
    error: TransportError | None = None

    @classmethod
    def of(cls, task: "asyncio.Future[bytes]") -> "Reply":
        if task.cancelled():
            return cls(error=TransportError(TransportErrorKind.CANCELED, "Operation canceled"))
        exc = task.exception()
        if exc is None:
            return cls(body=task.result())
        if isinstance(exc, TransportError):
            return cls(error=exc)
        return cls(error=TransportError(TransportErrorKind.OTHER, f"{type(exc).__name__}: {exc}"))

    def json(self) -> Any:
        """Decode the body; raises ParseError."""
        return parse_json(self.body)


class SyncthingClient:
    """HTTP client for a single Syncthing instance.

    Every request runs as its own task; the task is the cancelable handle.
    Settings may change between requests since each request builds its own
    ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        name: str = "default",
        url: str = "",
        api_key: str = "",
        *,
        user: str = "",
        password: str = "",
        certificate_path: str | None = None,
        expected_tls_errors: tuple[ExpectedTlsError, ...] = (),
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.name = name
        self.url = url
        self.api_key = api_key
        self.user = user
        self.password = password
        self.certificate_path = certificate_path
        self.expected_tls_errors = tuple(expected_tls_errors)
        self.timeout = timeout

    @property
    def url(self) -> str:
        return self._url

    @url.setter
    def url(self, value: str) -> None:
        self._url = value.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "X-API-Key": self.api_key,
            "Accept": "application/json",
            "Content-Type": "application/x-www-form-urlencoded",
        }

    def _auth(self) -> httpx.BasicAuth | None:
        if not self.user:
            return None
        return httpx.BasicAuth(self.user, self.password)

    def endpoint(self, path: str, *, rest: bool = True) -> str:
        """Absolute URL for ``path`` below ``/rest/`` (or below the root)."""
        if rest:
            return f"{self.url}/rest/{path.lstrip('/')}"
        return f"{self.url}/{path.lstrip('/')}"

    async def _fetch(
        self,
        method: str,
        path: str,
        params: dict | None,
        rest: bool,
        timeout: float | None,
    ) -> bytes:
        url = self.endpoint(path, rest=rest)
        try:
            verify = build_ssl_context(self.certificate_path, self.expected_tls_errors)
            async with httpx.AsyncClient(
                timeout=timeout or self.timeout,
                verify=verify,
                auth=self._auth(),
            ) as client:
                resp = await client.request(
                    method,
                    url,
                    headers=self._headers(),
                    params=params,
                )
                resp.raise_for_status()
                return resp.content
        except httpx.TimeoutException as exc:
            raise TransportError(TransportErrorKind.TIMEOUT, self.handle_error(exc)) from exc
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                TransportErrorKind.OTHER,
                self.handle_error(exc),
                exc.response.status_code,
            ) from exc
        except (httpx.HTTPError, ssl.SSLError, OSError) as exc:
            raise TransportError(TransportErrorKind.OTHER, self.handle_error(exc)) from exc

    def request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        *,
        rest: bool = True,
        timeout: float | None = None,
    ) -> "asyncio.Task[bytes]":
        """Start a request on the running loop and return its handle."""
        logger.debug("%s %s %s", method, path, params or "")
        return asyncio.get_running_loop().create_task(
            self._fetch(method, path, params, rest, timeout)
        )

    def get(
        self,
        path: str,
        params: dict | None = None,
        *,
        rest: bool = True,
        timeout: float | None = None,
    ) -> "asyncio.Task[bytes]":
        return self.request("GET", path, params, rest=rest, timeout=timeout)

    def post(self, path: str, params: dict | None = None) -> "asyncio.Task[bytes]":
        return self.request("POST", path, params)

    def handle_error(self, e: Exception) -> str:
        """Consistent error formatting referencing this instance."""
        prefix = f"[{self.name}] " if self.name != "default" else ""
        if isinstance(e, httpx.HTTPStatusError):
            status = e.response.status_code
            if status == 401:
                return f"{prefix}Error 401: Unauthorized. Check API key for instance '{self.name}'."
            if status == 403:
                return f"{prefix}Error 403: Forbidden. API key may lack permissions."
            if status == 404:
                return f"{prefix}Error 404: Not found. Check the folder/device ID. Detail: {e.response.text}"
            return f"{prefix}Error {status}: {e.response.text}"
        if isinstance(e, httpx.ConnectError):
            return f"{prefix}Error: Cannot connect to Syncthing at {self.url}. Is it running?"
        if isinstance(e, httpx.TimeoutException):
            return f"{prefix}Error: Request timed out. Syncthing may be busy or unreachable."
        return f"{prefix}Error: {type(e).__name__}: {e}"
