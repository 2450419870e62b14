"""
HTTP client for the GNPy path computation engine
"""

import logging
from typing import Any, Dict, Optional

import requests

from optical_controller.config.settings import settings
from optical_controller.core.exceptions import NotConnectedError, PathComputationError


logger = logging.getLogger(__name__)


class PathComputationClient:
    """Blocking JSON-over-HTTP transport to the path computation engine."""

    def __init__(self, protocol: str, host: str, port: int,
                 path: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = f"{protocol}://{host}:{port}"
        self.path = path if path is not None else settings.PCE_PATH
        self.timeout = timeout if timeout is not None else settings.PCE_TIMEOUT_SEC
        self._session: Optional[requests.Session] = None

    def connect(self, username: Optional[str] = None, password: Optional[str] = None) -> None:
        """Open an HTTP session, with basic auth when credentials are given."""
        session = requests.Session()
        if username:
            session.auth = (username, password or "")
        session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })
        self._session = session
        logger.info(f"Path computation engine session opened to {self.base_url}")

    def disconnect(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
            logger.info(f"Path computation engine session to {self.base_url} closed")

    def is_connected(self) -> bool:
        return self._session is not None

    def post(self, payload: Dict[str, Any]) -> str:
        """
        Submit a request to the engine.

        Args:
            payload: JSON body

        Returns:
            Raw response body

        Raises:
            NotConnectedError: if connect() was not called
            PathComputationError: on transport errors or non-2xx answers
        """
        if self._session is None:
            raise NotConnectedError("Path computation engine is not connected")

        url = f"{self.base_url}{self.path}"
        try:
            response = self._session.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise PathComputationError(f"Request to {url} failed: {e}") from e

        logger.debug(f"Path computation engine answered {response.status_code} "
                     f"({len(response.text)} bytes)")
        return response.text
