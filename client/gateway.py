"""Persistence gateway: the client's only route to the archive API.

Mirrors the failure policy of the interactive client: loads fall back to
the caller's default, saves report ``saving``/``saved``/``error`` through a
callback and never raise, nothing is retried or queued here.
"""

import json
from typing import Any, Callable, Dict, Optional, TypeVar

import requests
from loguru import logger


T = TypeVar("T")

SaveStatusCallback = Callable[[str], None]

SAVING = "saving"
SAVED = "saved"
ERROR = "error"


class PersistenceGateway:
    """Thin HTTP client over the ``/api`` surface."""

    def __init__(
        self,
        base_url: str = "http://localhost:4000/api",
        session: Optional[Any] = None,
        timeout: Optional[float] = 10.0
    ):
        """Initialize the gateway.

        Args:
            base_url: API root including the ``/api`` prefix
            session: requests-compatible session (``get``/``post`` returning
                responses with ``status_code``, ``json()`` and ``raise_for_status()``)
            timeout: Per-request timeout in seconds, None to leave it to the session
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs):
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return getattr(self.session, method)(self._url(path), **kwargs)

    def check_health(self) -> bool:
        """Whether the API and its database answer.

        Raises:
            Exception: Whatever the transport raised, or HTTPError on a non-2xx reply
        """
        response = self._request("get", "health")
        response.raise_for_status()
        return bool(response.json().get("ok"))

    def load(self, name: str, default: T) -> T:
        """Load a collection, falling back to ``default``.

        An empty stored collection also yields ``default``, so seed values
        (the initial administrator, for example) survive a fresh database.
        """
        try:
            response = self._request("get", name)
            if response.status_code >= 400:
                logger.warning(f"Loading {name} failed with HTTP {response.status_code}")
                return default
            data = response.json()
        except Exception as e:
            logger.warning(f"Loading {name} failed: {e}")
            return default

        if isinstance(data, list) and len(data) == 0:
            return default
        return data

    def save(
        self,
        name: str,
        data: Any,
        on_status: Optional[SaveStatusCallback] = None
    ) -> bool:
        """Replace a collection on the server.

        Args:
            name: Collection name
            data: Complete collection; anything but a list is sent as ``[]``
            on_status: Receives ``saving`` then ``saved`` or ``error``

        Returns:
            Whether the server accepted the collection
        """
        if on_status:
            on_status(SAVING)
        try:
            response = self._request("post", name, json=data if isinstance(data, list) else [])
            response.raise_for_status()
        except Exception as e:
            logger.error(f"Saving {name} failed: {e}")
            if on_status:
                on_status(ERROR)
            return False

        if on_status:
            on_status(SAVED)
        return True

    def create_backup(self) -> str:
        """Full export as a JSON string (``"{}"`` when the export fails)."""
        try:
            response = self._request("get", "backup")
            if response.status_code >= 400:
                return json.dumps({})
            return json.dumps(response.json(), ensure_ascii=False)
        except Exception as e:
            logger.error(f"Backup download failed: {e}")
            return json.dumps({})

    def restore_backup(self, json_string: str) -> bool:
        """Upload a backup produced by ``create_backup``."""
        try:
            payload = json.loads(json_string)
            response = self._request("post", "restore", json=payload)
        except Exception as e:
            logger.error(f"Restore failed: {e}")
            return False
        return response.status_code < 400

    def fetch_status_metrics(self) -> Optional[Dict[str, Any]]:
        """Status history for the status page, or None when unavailable."""
        try:
            response = self._request("get", "status-metrics")
            if response.status_code >= 400:
                return None
            return response.json()
        except Exception as e:
            logger.warning(f"Status metrics unavailable: {e}")
            return None

    def fetch_db_metrics(self) -> Optional[Dict[str, Any]]:
        """Database size snapshot, or None when unavailable."""
        try:
            response = self._request("get", "db-metrics")
            if response.status_code >= 400:
                return None
            return response.json()
        except Exception as e:
            logger.warning(f"DB metrics unavailable: {e}")
            return None
