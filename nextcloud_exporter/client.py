"""
HTTP client for the Nextcloud serverinfo endpoint.
"""
from typing import Optional

import requests
import urllib3

from .exceptions import (
    AuthorizationError,
    ParseError,
    RateLimitError,
    TransportError,
    UnexpectedStatusError,
)
from .serverinfo import ServerInfo, parse_json


class InfoClient:
    """Fetches and parses the serverinfo document, one request per call.

    Either ``auth_token`` (sent as ``NC-Token``) or basic auth with
    ``username``/``password`` is attached to each request, never both. The
    token wins when it is set.
    """

    def __init__(self, info_url: str, username: str = "", password: str = "",
                 auth_token: str = "", timeout: float = 5.0,
                 user_agent: str = "nextcloud-exporter",
                 tls_skip_verify: bool = False,
                 session: Optional[requests.Session] = None):
        self.info_url = info_url
        self.username = username
        self.password = password
        self.auth_token = auth_token
        self.timeout = timeout
        self.user_agent = user_agent
        self.tls_skip_verify = tls_skip_verify
        self.session = session or requests.Session()

        if self.tls_skip_verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _request_kwargs(self) -> dict:
        headers = {"User-Agent": self.user_agent}
        kwargs = {
            "headers": headers,
            "timeout": self.timeout,
            "verify": not self.tls_skip_verify,
        }
        if self.auth_token:
            headers["NC-Token"] = self.auth_token
        else:
            kwargs["auth"] = (self.username, self.password)
        return kwargs

    def fetch(self) -> ServerInfo:
        """Perform a single GET and return the parsed server info.

        Raises:
            TransportError: the request did not complete.
            AuthorizationError: HTTP 401.
            RateLimitError: HTTP 429.
            UnexpectedStatusError: any other status except 200.
            ParseError: the body is not a valid serverinfo document.
        """
        try:
            response = self.session.get(self.info_url, **self._request_kwargs())
        except requests.RequestException as e:
            raise TransportError(f"request to {self.info_url} failed: {e}") from e

        try:
            if response.status_code == 401:
                raise AuthorizationError()
            if response.status_code == 429:
                raise RateLimitError()
            if response.status_code != 200:
                raise UnexpectedStatusError(response.status_code)

            try:
                return parse_json(response.content)
            except ParseError as e:
                raise ParseError(f"can not parse server info: {e}") from e
            except requests.RequestException as e:
                # body read failed after headers arrived
                raise TransportError(f"reading response from {self.info_url} failed: {e}") from e
        finally:
            response.close()

    __call__ = fetch

    def close(self):
        """Close the underlying session."""
        self.session.close()
