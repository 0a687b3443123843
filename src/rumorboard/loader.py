"""Fetch the pre-built rumor batch from a URL or a local JSON file."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import requests

from rumorboard.errors import FeedLoadError

logger = logging.getLogger(__name__)


def build_tag(now: datetime | None = None) -> str:
    """Cache-busting tag, ``YYYY-MM-DD-<epoch ms>``."""
    now = now or datetime.now(UTC)
    return f"{now:%Y-%m-%d}-{int(now.timestamp() * 1000)}"


def _rows(payload: Any, origin: str) -> list[dict[str, Any]]:
    """Accept a bare list or ``{"rumors": [...]}``."""
    if isinstance(payload, dict) and isinstance(payload.get("rumors"), list):
        payload = payload["rumors"]
    if not isinstance(payload, list):
        raise FeedLoadError(
            f"Expected a JSON array of rumor records from {origin}, got {type(payload).__name__}"
        )
    return payload


class FeedClient:
    """Thin wrapper around a single uncached ``GET`` of the batch file."""

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"Cache-Control": "no-store", "Accept": "application/json"})

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> FeedClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def fetch(self, url: str, tag: str | None = None) -> list[dict[str, Any]]:
        params = {"v": tag or build_tag()}
        try:
            resp = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise FeedLoadError(f"Could not reach {url}: {exc}") from exc
        if resp.status_code != 200:
            raise FeedLoadError(f"{url} returned {resp.status_code}: {resp.text[:500]}")
        try:
            payload = resp.json()
        except ValueError as exc:
            raise FeedLoadError(f"{url} did not return valid JSON: {exc}") from exc

        rows = _rows(payload, url)
        logger.info("Fetched %d rumor records from %s", len(rows), url)
        return rows


def load_records(source: str | Path, client: FeedClient | None = None) -> list[dict[str, Any]]:
    """Load raw rumor rows from an http(s) URL or a local file path.

    A *client* passed in is left open; one created here is closed after use.
    """
    src = str(source)
    if src.startswith(("http://", "https://")):
        if client is not None:
            return client.fetch(src)
        with FeedClient() as owned:
            return owned.fetch(src)

    path = Path(src)
    try:
        with open(path, encoding="utf-8") as fh:
            payload = json.load(fh)
    except FileNotFoundError as exc:
        raise FeedLoadError(f"Rumor batch not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise FeedLoadError(f"Could not read rumor batch {path}: {exc}") from exc

    rows = _rows(payload, str(path))
    logger.info("Loaded %d rumor records from %s", len(rows), path)
    return rows
