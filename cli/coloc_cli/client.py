"""HTTP client for the coLoc game server."""
from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ApiClient:
    """HTTP client for the coLoc game server."""

    def __init__(self, api_url: str, client: httpx.Client | None = None, timeout: float = 10.0):
        self.api_url = api_url.rstrip("/")
        self.client = client if client is not None else httpx.Client(base_url=self.api_url, timeout=timeout)

    def _headers(self) -> dict:
        return {"Content-Type": "application/json", "Accept": "application/json"}

    def get(self, path: str) -> Any:
        """Make GET request."""
        res = self.client.get(path, headers=self._headers())
        res.raise_for_status()
        return res.json()

    def post(self, path: str, data: dict) -> Any:
        """Make POST request."""
        res = self.client.post(path, json=data, headers=self._headers())
        res.raise_for_status()
        return res.json()

    def health(self) -> bool:
        return self.get("/health").get("status") == "ok"

    def get_state(self) -> dict[str, Any]:
        """Current server snapshot as {sessions, teams}."""
        return self.get("/api/state")["state"]

    def send_action(self, type: str, payload: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        """
        Apply one action on the server.

        Returns (ack, snapshot): the handler's reply and the snapshot the
        action produced.
        """
        body = self.post("/api/actions", {"type": type, "payload": payload})
        return body.get("ack") or {}, body["state"]

    def get_catalog(self) -> dict[str, Any]:
        return self.get("/api/catalog")

    def close(self):
        """Close client."""
        self.client.close()


class RemoteTransport:
    """
    Adapts ApiClient to the mirror.

    Starts connected. The first transport error (server unreachable) flips it
    offline for good; the mirror then carries on with its local copy. An error
    status from a reachable server is raised to the caller as
    httpx.HTTPStatusError and leaves the transport connected.
    """

    def __init__(self, api: ApiClient):
        self.api = api
        self.connected = True

    def send(self, type: str, payload: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]] | None:
        """Send one action. Returns None once the server is unreachable."""
        if not self.connected:
            return None
        try:
            return self.api.send_action(type, payload)
        except httpx.TransportError as e:
            self._go_offline(e)
            return None

    def fetch_state(self) -> dict[str, Any] | None:
        if not self.connected:
            return None
        try:
            return self.api.get_state()
        except httpx.TransportError as e:
            self._go_offline(e)
            return None

    def _go_offline(self, error: Exception) -> None:
        logger.warning("transport: %s unreachable, continuing offline (%s)", self.api.api_url, error)
        self.connected = False
