import logging
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import requests

from .errors import ForqServerError, TransportError

Timeout = Union[float, Tuple[float, Optional[float]], None]

logger = logging.getLogger(__name__)


class BaseClient:
    """HTTP plumbing shared by the Forq consumer and producer."""

    def __init__(
        self,
        base_url: str,
        auth_secret: str,
        timeout: Timeout = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Forq client.

        Args:
            base_url: Base URL of Forq server
            auth_secret: Shared secret sent in the X-API-Key header
            timeout: Request timeout in seconds, or a (connect, read) tuple as
                accepted by requests. None or 0 disables it.
            session: Optional requests session to use instead of a private one
        """
        self.base_url = base_url.rstrip("/")
        self.auth_secret = auth_secret
        self.timeout = timeout or None
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        ok_statuses: Iterable[int] = (204,),
    ) -> requests.Response:
        """
        Make one HTTP request to the Forq server.

        Returns the response when its status is one of ``ok_statuses``,
        otherwise raises ForqServerError with the decoded error code.
        """
        url = self.base_url + path
        headers = {"Accept": "application/json", "X-API-Key": self.auth_secret}

        try:
            if data is None:
                resp = self.session.request(
                    method, url, headers=headers, timeout=self.timeout
                )
            else:
                resp = self.session.request(
                    method, url, json=data, headers=headers, timeout=self.timeout
                )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"failed to send HTTP request: {e}") from e

        logger.debug("%s %s -> %d", method, url, resp.status_code)
        if resp.status_code in ok_statuses:
            return resp

        try:
            error_data = resp.json()
        except ValueError as e:
            raise TransportError(
                f"failed to decode error response (HTTP {resp.status_code}): {e}"
            ) from e
        if not isinstance(error_data, dict):
            raise TransportError(
                f"failed to decode error response (HTTP {resp.status_code}): "
                f"expected a JSON object, got {type(error_data).__name__}"
            )
        raise ForqServerError(error_data.get("code", ""), resp.status_code)
