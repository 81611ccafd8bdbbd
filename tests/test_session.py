"""Tests for session persistence."""
from __future__ import annotations

from datetime import datetime, timezone

from mysa2mqtt.models import MysaSession
from mysa2mqtt.session import load_session, save_session


def _session() -> MysaSession:
    return MysaSession(
        username="user@example.com",
        id_token="id",
        access_token="access",
        refresh_token="refresh",
        expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )


def test_save_then_load(tmp_path):
    path = str(tmp_path / "session.json")

    save_session(_session(), path)

    assert load_session(path) == _session()


def test_missing_or_invalid_file(tmp_path):
    assert load_session(str(tmp_path / "missing.json")) is None

    invalid = tmp_path / "invalid.json"
    invalid.write_text('{"id_token": "only"}', encoding="utf-8")
    assert load_session(str(invalid)) is None


def test_saving_none_removes_file(tmp_path):
    path = tmp_path / "session.json"
    save_session(_session(), str(path))

    save_session(None, str(path))
    assert not path.exists()

    # already gone
    save_session(None, str(path))


def test_naive_expiry_is_utc():
    session = MysaSession(id_token="id", access_token="access", expires_at=datetime(2000, 1, 1))

    assert session.expires_at.tzinfo is timezone.utc
    assert session.is_expired
