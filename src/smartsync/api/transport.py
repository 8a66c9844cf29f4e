"""HTTP transport used to reach the service's REST endpoints.

Every call the core makes is a plain GET returning the raw response body.
Authentication is the transport's concern: subclasses supply the
``Authorization`` header through :meth:`HTTPTransport.authorization`.
"""

import logging
from abc import ABC, abstractmethod

import requests

from ..core.exceptions import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class Transport(ABC):
    """Capability to fetch a URI."""

    @abstractmethod
    def get(self, uri: str) -> bytes:
        """Issue a GET request and return the response body.

        Raises:
            NetworkError: On any transport-level failure.
        """

    def close(self) -> None:
        """Release underlying connections."""

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class HTTPTransport(Transport):
    """``requests``-backed transport.

    One-shot requests: no retries, no backoff. HTTP status codes of 400 and
    above are reported as :class:`NetworkError` carrying the status code.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str | None = None,
        session: requests.Session | None = None,
    ):
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers["Accept"] = "application/json"
        if user_agent:
            self._session.headers["User-Agent"] = user_agent

    def authorization(self) -> str | None:
        """Value for the ``Authorization`` header, or None to send none."""
        return None

    def get(self, uri: str) -> bytes:
        headers = {}
        auth = self.authorization()
        if auth:
            headers["Authorization"] = auth

        logger.debug("GET %s", uri)
        try:
            response = self._session.get(uri, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"GET {uri} failed", str(e)) from e

        if response.status_code >= 400:
            raise NetworkError(
                f"GET {uri} returned HTTP {response.status_code}",
                response.reason or None,
                status_code=response.status_code,
            )
        return response.content

    def close(self) -> None:
        self._session.close()


class BearerTransport(HTTPTransport):
    """Transport authenticating with a fixed bearer token."""

    def __init__(self, token: str, **kwargs):
        super().__init__(**kwargs)
        self._token = token

    def authorization(self) -> str | None:
        return f"Bearer {self._token}"
