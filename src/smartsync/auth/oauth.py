"""OAuth2 authorization-code flow and auto-refreshing transport.

The first run of a client sends the user to the service's authorization
page; the code that comes back on the redirect URI is exchanged for a
credential, which is persisted. Later runs reuse the stored credential and
:class:`OAuthTransport` renews it when it expires, saving the replacement
under the same key.
"""

import logging
import secrets
import sys
import threading
import time
from collections.abc import Callable
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse

import requests

from ..api.transport import DEFAULT_TIMEOUT, HTTPTransport
from ..core.config import OAuthConfig
from ..core.exceptions import AuthError
from .credentials import Credential, CredentialStore

logger = logging.getLogger(__name__)

# Receives the authorization URL, returns the authorization code
Authorizer = Callable[[str], str]


class OAuthClient:
    """Talks to the service's OAuth2 authorize and token endpoints.

    Args:
        client_id: OAuth client id.
        secret: OAuth client secret.
        oauth: Endpoint URLs, redirect URI and scope.
        timeout: Timeout for token requests in seconds.
        session: Optional ``requests.Session`` to reuse.
    """

    def __init__(
        self,
        client_id: str,
        secret: str,
        oauth: OAuthConfig | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.client_id = client_id
        self._secret = secret
        self.oauth = oauth or OAuthConfig()
        self.timeout = timeout
        self._session = session or requests.Session()

    def authorization_url(self, state: str | None = None) -> str:
        """URL the user must visit to grant access."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.oauth.redirect_uri,
            "scope": self.oauth.scope,
        }
        if state:
            params["state"] = state
        return f"{self.oauth.authorize_url}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Credential:
        """Exchange an authorization code for a credential.

        Raises:
            AuthError: If the token endpoint rejects the code or is unreachable.
        """
        logger.info("Exchanging authorization code for client %s", self.client_id)
        data = self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.oauth.redirect_uri,
        })
        return Credential.from_token_response(data)

    def refresh(self, credential: Credential) -> Credential:
        """Obtain a fresh access token using the credential's refresh token.

        The old refresh token is carried over when the service does not
        issue a new one.

        Raises:
            AuthError: If the credential has no refresh token or the refresh fails.
        """
        if not credential.refresh_token:
            raise AuthError("Credential expired and has no refresh token")

        logger.info("Refreshing access token for client %s", self.client_id)
        data = self._token_request({
            "grant_type": "refresh_token",
            "refresh_token": credential.refresh_token,
        })
        renewed = Credential.from_token_response(data)
        if not renewed.refresh_token:
            renewed.refresh_token = credential.refresh_token
        return renewed

    def _token_request(self, data: dict[str, str]) -> dict[str, Any]:
        payload = dict(data, client_id=self.client_id, client_secret=self._secret)
        try:
            response = self._session.post(
                self.oauth.token_url,
                data=payload,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise AuthError("Token endpoint unreachable", str(e)) from e

        if response.status_code >= 400:
            raise AuthError(
                f"Token request failed with HTTP {response.status_code}",
                _oauth_error(response),
            )

        try:
            body = response.json()
        except ValueError as e:
            raise AuthError("Token endpoint returned invalid JSON", str(e)) from e
        if not isinstance(body, dict):
            raise AuthError("Token endpoint returned an unexpected payload")
        return body


def _oauth_error(response: requests.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.reason or None
    if isinstance(body, dict):
        return body.get("error_description") or body.get("error")
    return None


class OAuthTransport(HTTPTransport):
    """Transport that attaches the credential and renews it on expiry.

    Renewal is serialized so concurrent requests on an expired credential
    trigger a single refresh; the renewed credential is saved to ``store``
    under ``key`` before it is used.
    """

    def __init__(
        self,
        client: OAuthClient,
        credential: Credential,
        store: CredentialStore,
        key: str,
        **kwargs,
    ):
        kwargs.setdefault("timeout", client.timeout)
        super().__init__(**kwargs)
        self.client = client
        self.store = store
        self.key = key
        self._credential = credential
        self._lock = threading.Lock()

    @property
    def credential(self) -> Credential:
        return self._credential

    def authorization(self) -> str | None:
        with self._lock:
            if self._credential.is_expired():
                renewed = self.client.refresh(self._credential)
                self._credential = renewed
                self.store.save(self.key, renewed)
            token = self._credential.access_token
        return f"Bearer {token}"


def obtain_credential(
    client: OAuthClient,
    store: CredentialStore,
    key: str,
    authorize: Authorizer | None = None,
) -> Credential:
    """Load the stored credential, or run the authorization-code flow.

    Args:
        client: OAuth client for the account.
        store: Credential store.
        key: Store key for this client.
        authorize: Callback that shows the authorization URL to the user and
            returns the resulting code. Defaults to :class:`LocalCallbackAuthorizer`.

    Returns:
        A valid credential, persisted in ``store``.

    Raises:
        AuthError: If acquisition or persistence fails.
    """
    credential = store.load(key)
    if credential is not None and credential.is_valid():
        logger.debug("Using stored credential %s", key)
        return credential

    if credential is not None:
        logger.info("Stored credential %s is no longer usable, re-authorizing", key)

    authorize = authorize or LocalCallbackAuthorizer(client.oauth.redirect_uri)
    state = secrets.token_urlsafe(16)
    code = authorize(client.authorization_url(state=state))
    if not code:
        raise AuthError("No authorization code received")

    credential = client.exchange_code(code)
    store.save(key, credential)
    logger.info("Stored new credential %s", key)
    return credential


class LocalCallbackAuthorizer:
    """Waits for the OAuth redirect on a one-shot local HTTP listener.

    The redirect URI must point at this machine (for example
    ``http://localhost:4567/OAuthCallback``). The authorization URL is
    written to ``stream`` for the user to open in a browser.
    """

    def __init__(self, redirect_uri: str, timeout: float = 300.0, stream=None):
        parsed = urlparse(redirect_uri)
        if parsed.scheme != "http" or not parsed.hostname:
            raise AuthError(f"Redirect URI is not a local http URL: {redirect_uri}")
        self.host = parsed.hostname
        self.port = parsed.port or 80
        self.path = parsed.path or "/"
        self.timeout = timeout
        self.stream = stream or sys.stderr

    def __call__(self, url: str) -> str:
        expected_state = parse_qs(urlparse(url).query).get("state", [None])[0]
        result: dict[str, str] = {}
        path = self.path

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:
                parsed = urlparse(self.path)
                if parsed.path != path:
                    self.send_error(404)
                    return
                for name, values in parse_qs(parsed.query).items():
                    result[name] = values[0]
                self.send_response(200)
                self.send_header("Content-Type", "text/plain; charset=utf-8")
                self.end_headers()
                self.wfile.write(b"Authorization received. You can close this window.\n")

            def log_message(self, format: str, *args: Any) -> None:
                logger.debug("callback: " + format, *args)

        try:
            server = HTTPServer((self.host, self.port), Handler)
        except OSError as e:
            raise AuthError(f"Cannot listen on {self.host}:{self.port}", str(e)) from e

        print(f"Visit the following URL to authorize access:\n\n{url}\n", file=self.stream)
        deadline = time.monotonic() + self.timeout
        try:
            while not result:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                server.timeout = remaining
                server.handle_request()
        finally:
            server.server_close()

        if not result:
            raise AuthError("Timed out waiting for authorization")
        if "error" in result:
            raise AuthError("Authorization denied", result.get("error_description") or result["error"])
        if expected_state and result.get("state") != expected_state:
            raise AuthError("Authorization state mismatch")
        code = result.get("code")
        if not code:
            raise AuthError("Authorization redirect did not include a code")
        return code
