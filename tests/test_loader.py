"""Tests for loading rumor batches from files and URLs."""

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from rumorboard.errors import FeedLoadError
from rumorboard.loader import FeedClient, build_tag, load_records


def _client(status: int = 200, payload=None, json_error: bool = False) -> FeedClient:
    client = FeedClient(timeout=5)
    resp = MagicMock()
    resp.status_code = status
    resp.text = "nope"
    if json_error:
        resp.json.side_effect = ValueError("bad json")
    else:
        resp.json.return_value = payload
    client._session = MagicMock()
    client._session.get.return_value = resp
    return client


class TestBuildTag:
    def test_format(self) -> None:
        now = datetime(2024, 7, 1, 0, 0, 1, tzinfo=UTC)
        assert build_tag(now) == f"2024-07-01-{int(now.timestamp() * 1000)}"


class TestLoadFile:
    def test_bare_list(self, tmp_path: Path) -> None:
        path = tmp_path / "batch.json"
        path.write_text(json.dumps([{"player_name": "A"}]), encoding="utf-8")
        assert load_records(path) == [{"player_name": "A"}]

    def test_wrapped_list(self, tmp_path: Path) -> None:
        path = tmp_path / "batch.json"
        path.write_text(json.dumps({"rumors": [{"x": 1}, {"x": 2}]}), encoding="utf-8")
        assert len(load_records(str(path))) == 2

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FeedLoadError, match="not found"):
            load_records(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "batch.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(FeedLoadError):
            load_records(path)

    def test_wrong_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "batch.json"
        path.write_text(json.dumps({"rows": []}), encoding="utf-8")
        with pytest.raises(FeedLoadError, match="JSON array"):
            load_records(path)

    def test_bundled_sample(self) -> None:
        sample = Path(__file__).resolve().parents[1] / "data" / "final_rumors_clean.json"
        assert len(load_records(sample)) == 5


class TestFetch:
    def test_success_sends_cache_buster(self) -> None:
        client = _client(payload=[{"a": 1}])
        rows = load_records("https://example.com/rumors.json", client=client)
        assert rows == [{"a": 1}]
        _, kwargs = client._session.get.call_args
        assert kwargs["params"]["v"]
        assert kwargs["timeout"] == 5

    def test_explicit_tag(self) -> None:
        client = _client(payload=[])
        client.fetch("https://example.com/r.json", tag="t1")
        _, kwargs = client._session.get.call_args
        assert kwargs["params"] == {"v": "t1"}

    def test_http_error(self) -> None:
        with pytest.raises(FeedLoadError, match="503"):
            _client(status=503).fetch("https://example.com/r.json")

    def test_network_error(self) -> None:
        client = _client()
        client._session.get.side_effect = requests.ConnectionError("down")
        with pytest.raises(FeedLoadError, match="Could not reach"):
            client.fetch("https://example.com/r.json")

    def test_bad_json(self) -> None:
        with pytest.raises(FeedLoadError, match="valid JSON"):
            _client(json_error=True).fetch("https://example.com/r.json")


class TestSessionLifecycle:
    def test_context_manager_closes_session(self) -> None:
        with _client(payload=[]) as client:
            client.fetch("https://example.com/r.json")
        client._session.close.assert_called_once()

    def test_caller_client_left_open(self) -> None:
        client = _client(payload=[])
        load_records("https://example.com/r.json", client=client)
        client._session.close.assert_not_called()

    def test_owned_client_closed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        session_cls = MagicMock()
        session = session_cls.return_value
        session.get.return_value.status_code = 200
        session.get.return_value.json.return_value = [{"a": 1}]
        monkeypatch.setattr(requests, "Session", session_cls)
        assert load_records("https://example.com/r.json") == [{"a": 1}]
        session.close.assert_called_once()
