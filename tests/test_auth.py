"""Tests for the browser session module."""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest import mock

import pytest

from notionmd.auth import (
    NOTION_COOKIE_DOMAINS,
    NOTION_COOKIE_NAME,
    NotionSession,
    build_browser_config,
    load_cookies_file,
    load_session_from_env,
    load_session_from_file,
)


def _write_json(path: Path, data) -> str:
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


class TestNotionSession:
    """Tests for the NotionSession dataclass."""

    def test_empty_session(self):
        assert NotionSession().is_empty is True

    def test_token_not_empty(self):
        assert NotionSession(notion_token="v02%3Atoken").is_empty is False

    def test_profile_not_empty(self):
        assert NotionSession(profile_dir="/tmp/profile").is_empty is False

    def test_token_becomes_cookie_per_domain(self):
        cookies = NotionSession(notion_token="abc").session_cookies()
        assert [c["domain"] for c in cookies] == list(NOTION_COOKIE_DOMAINS)
        assert all(c["name"] == NOTION_COOKIE_NAME and c["value"] == "abc" for c in cookies)
        assert all(c["secure"] and c["httpOnly"] for c in cookies)

    def test_explicit_cookies_kept_first(self):
        extra = {"name": "notion_user_id", "value": "u1", "domain": ".notion.so", "path": "/"}
        cookies = NotionSession(notion_token="abc", cookies=[extra]).session_cookies()
        assert cookies[0] == extra
        assert len(cookies) == 1 + len(NOTION_COOKIE_DOMAINS)

    def test_no_token_no_token_cookies(self):
        assert NotionSession().session_cookies() == []

    def test_storage_state_dict_returned_as_is(self):
        state = {"cookies": [], "origins": []}
        assert NotionSession(storage_state=state).load_storage_state() is state

    def test_storage_state_read_from_file(self, tmp_path: Path):
        path = _write_json(tmp_path / "state.json", {"cookies": [{"name": "token_v2"}]})
        state = NotionSession(storage_state=path).load_storage_state()
        assert state == {"cookies": [{"name": "token_v2"}]}

    def test_storage_state_file_not_found(self):
        session = NotionSession(storage_state="/nonexistent/state.json")
        with pytest.raises(FileNotFoundError, match="Storage state file not found"):
            session.load_storage_state()

    def test_storage_state_none(self):
        assert NotionSession().load_storage_state() is None


class TestBuildBrowserConfig:
    """Tests for build_browser_config."""

    def test_no_session_returns_headless_default(self):
        cfg = build_browser_config(None)
        assert cfg.headless is True
        assert cfg.use_persistent_context is False

    def test_empty_session_returns_default(self):
        assert build_browser_config(NotionSession()).headless is True

    def test_token_injected_as_cookies(self):
        cfg = build_browser_config(NotionSession(notion_token="secret"))
        assert len(cfg.cookies) == len(NOTION_COOKIE_DOMAINS)
        assert cfg.cookies[0]["value"] == "secret"

    def test_storage_state_loaded(self, tmp_path: Path):
        path = _write_json(tmp_path / "state.json", {"cookies": [], "origins": []})
        cfg = build_browser_config(NotionSession(storage_state=path))
        assert cfg.storage_state == {"cookies": [], "origins": []}

    def test_profile_enables_persistent_context(self, tmp_path: Path):
        cfg = build_browser_config(NotionSession(profile_dir=str(tmp_path)))
        assert cfg.use_persistent_context is True
        assert cfg.user_data_dir == str(tmp_path)


class TestLoadSessionFromEnv:
    """Tests for load_session_from_env."""

    def test_no_env_vars_returns_none(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            assert load_session_from_env() is None

    def test_token_env(self):
        with mock.patch.dict(os.environ, {"NOTIONMD_TOKEN_V2": "tok"}, clear=True):
            session = load_session_from_env()
        assert session is not None
        assert session.notion_token == "tok"

    def test_storage_state_and_profile_env(self):
        env = {
            "NOTIONMD_AUTH_STORAGE_STATE": "/tmp/state.json",
            "NOTIONMD_AUTH_PROFILE": "/tmp/profile",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            session = load_session_from_env()
        assert session.storage_state == "/tmp/state.json"
        assert session.profile_dir == "/tmp/profile"
        assert session.notion_token is None

    def test_cookies_file_env(self, tmp_path: Path):
        path = _write_json(tmp_path / "cookies.json", [{"name": "a", "value": "1"}])
        with mock.patch.dict(os.environ, {"NOTIONMD_AUTH_COOKIES_FILE": path}, clear=True):
            session = load_session_from_env()
        assert session.cookies == [{"name": "a", "value": "1"}]

    def test_blank_values_ignored(self):
        with mock.patch.dict(os.environ, {"NOTIONMD_TOKEN_V2": ""}, clear=True):
            assert load_session_from_env() is None


def test_missing_cookies_file_returns_empty(tmp_path: Path) -> None:
    assert load_cookies_file(str(tmp_path / "missing.json")) == []


class TestLoadSessionFromFile:
    """Tests for load_session_from_file."""

    def test_load_full_session(self, tmp_path: Path):
        path = _write_json(
            tmp_path / "session.json",
            {
                "notion_token": "tok",
                "cookies": [{"name": "a", "value": "1"}],
                "storage_state": "/tmp/state.json",
                "profile_dir": "/tmp/profile",
            },
        )
        session = load_session_from_file(path)
        assert session.notion_token == "tok"
        assert session.cookies == [{"name": "a", "value": "1"}]
        assert session.storage_state == "/tmp/state.json"
        assert session.profile_dir == "/tmp/profile"

    def test_unknown_keys_ignored(self, tmp_path: Path):
        path = _write_json(tmp_path / "session.json", {"headers": {"X": "y"}})
        assert load_session_from_file(path).is_empty is True

    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError, match="Session file not found"):
            load_session_from_file("/nonexistent/session.json")
