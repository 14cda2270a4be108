"""
Configuration for the coLoc CLI.

Config file (~/.coloc/config.json):
  {
    "default_url": "http://localhost:3001"
  }

Server URL resolution order:
  1. --api-url command line flag
  2. COLOC_API_URL environment variable
  3. default_url from config file
  4. None: play offline against the local mirror only

Usage:
  # Solo / offline
  coloc

  # Against a running game server
  coloc --api-url http://localhost:3001
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class Config:
    """Config manager for the coLoc CLI."""

    def __init__(self, api_url_override: str | None = None, config_dir: Path | None = None):
        """
        Initialize config.

        Args:
            api_url_override: Optional --api-url flag value
            config_dir: Directory holding config.json (default ~/.coloc)
        """
        self.config_dir = config_dir or Path.home() / ".coloc"
        self.config_file = self.config_dir / "config.json"
        self._data: dict = {}
        self._api_url_override = api_url_override
        self._load()

    def _load(self):
        """Load config from disk. An unreadable file counts as empty."""
        if not self.config_file.exists():
            return
        try:
            with open(self.config_file) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("config: ignoring unreadable %s: %s", self.config_file, e)
            return
        if isinstance(data, dict):
            self._data = data

    def _save(self):
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w") as f:
            json.dump(self._data, f, indent=2)

    @property
    def api_url(self) -> str | None:
        """Server URL, or None for offline play."""
        if self._api_url_override:
            return self._api_url_override.rstrip("/")

        env_url = os.environ.get("COLOC_API_URL")
        if env_url:
            return env_url.rstrip("/")

        return self.default_url

    @property
    def default_url(self) -> str | None:
        url = self._data.get("default_url")
        return url.rstrip("/") if url else None

    @default_url.setter
    def default_url(self, value: str | None):
        if value:
            self._data["default_url"] = value.rstrip("/")
        else:
            self._data.pop("default_url", None)
        self._save()
