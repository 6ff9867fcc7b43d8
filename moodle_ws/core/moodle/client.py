"""Low-level HTTP client for the Moodle REST web service.

Builds the server.php endpoint, encodes parameters the way PHP expects
them, performs the POST and hands the body to the response normalizer.
"""
from __future__ import annotations
import logging
from typing import Any, Mapping, Optional, Union
from urllib.parse import urlencode

import requests

from moodle_ws.config.settings import ClientSettings, Credentials, DEFAULT_TIMEOUT_SECONDS, REST_FORMAT_JSON
from .responses import HTTP_ERROR, TRANSPORT_ERROR, Result, TransportFailure, normalize

logger = logging.getLogger(__name__)

SERVER_PATH = "/webservice/rest/server.php"


def flatten_params(params: Mapping[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Flatten nested mappings/lists into PHP bracket notation.

    ``{"criteria": [{"key": "username", "value": "x"}]}`` becomes
    ``[("criteria[0][key]", "username"), ("criteria[0][value]", "x")]``.
    Mirrors ``http_build_query``: booleans become 1/0, None and empty
    lists are dropped.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        full_key = f"{prefix}[{key}]" if prefix else str(key)
        pairs.extend(_flatten_value(full_key, value))
    return pairs


def _flatten_value(key: str, value: Any) -> list[tuple[str, str]]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        return flatten_params(value, key)
    if isinstance(value, (list, tuple)):
        pairs: list[tuple[str, str]] = []
        for index, item in enumerate(value):
            pairs.extend(_flatten_value(f"{key}[{index}]", item))
        return pairs
    if isinstance(value, bool):
        return [(key, "1" if value else "0")]
    return [(key, str(value))]


def encode_params(params: Mapping[str, Any]) -> str:
    """URL-encode a parameter mapping for the request body."""
    return urlencode(flatten_params(params))


class MoodleClient:
    """HTTP client for the Moodle REST web service.

    Stateless apart from the read-only credentials, so one instance can be
    shared between callers.

    Usage:
        client = MoodleClient(Credentials("https://moodle.example.com", "token"))
        result = client.call("core_webservice_get_site_info", {})
        if result.success:
            print(result.response["sitename"])
    """

    def __init__(
        self,
        credentials: Credentials,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Moodle client.

        Args:
            credentials: Site URL, token and response format
            timeout: Request timeout in seconds
            verify_ssl: Verify the server's TLS certificate
            session: Optional requests session (anything with a ``post`` method)
        """
        self.credentials = credentials
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self._owns_session = session is None
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: ClientSettings, session: Optional[requests.Session] = None) -> "MoodleClient":
        return cls(
            settings.credentials,
            timeout=settings.timeout_seconds,
            verify_ssl=settings.verify_ssl,
            session=session,
        )

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self._session.close()

    @property
    def rest_format(self) -> str:
        return self.credentials.rest_format

    def build_url(self, function_name: str) -> str:
        """Return the server.php endpoint for ``function_name``.

        ``moodlewsrestformat=json`` is only added for JSON; XML is Moodle's default.
        """
        query = {"wstoken": self.credentials.token, "wsfunction": function_name}
        if self.rest_format == REST_FORMAT_JSON:
            query["moodlewsrestformat"] = REST_FORMAT_JSON
        return f"{self.credentials.url}{SERVER_PATH}?{urlencode(query)}"

    def post(self, function_name: str, params: Optional[Mapping[str, Any]] = None) -> Union[str, TransportFailure]:
        """POST ``params`` to ``function_name`` and return the raw body.

        Returns:
            Response text, or TransportFailure on connection errors and HTTP >= 400
        """
        url = self.build_url(function_name)
        body = encode_params(params or {})
        logger.debug("Calling Moodle function %s", function_name)

        try:
            resp = self._session.post(
                url,
                data=body,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
                verify=self.verify_ssl,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            logger.warning("Moodle call %s failed: %s", function_name, exc)
            return TransportFailure(message=str(exc), short=TRANSPORT_ERROR)

        if resp.status_code >= 400:
            logger.warning("Moodle call %s returned HTTP %s", function_name, resp.status_code)
            return TransportFailure(
                message=f"HTTP {resp.status_code}: {resp.text[:500]}",
                short=HTTP_ERROR,
                status_code=resp.status_code,
            )
        return resp.text or ""

    def call(self, function_name: str, params: Optional[Mapping[str, Any]] = None) -> Result:
        """Call a remote function and normalize its response.

        Args:
            function_name: Web service function (e.g. "core_user_get_users")
            params: Function parameters; nested lists/mappings are allowed

        Returns:
            Success, RemoteException or TransportFailure
        """
        raw = self.post(function_name, params)
        if isinstance(raw, TransportFailure):
            return raw
        return normalize(raw, self.rest_format)
