"""Browser session setup for private Notion pages.

Private workspace pages only render for a logged-in browser. A
:class:`NotionSession` names the one thing that identifies the login: the
``token_v2`` cookie, a Playwright storage state exported from a logged-in
browser, or a persistent browser profile. Extra cookies can be layered on
top. :func:`build_browser_config` turns the session into a crawl4ai
BrowserConfig.

Example usage:

    from notionmd.auth import NotionSession, build_browser_config

    session = NotionSession(notion_token="v02%3Auser_token...")
    browser_cfg = build_browser_config(session)

    session = NotionSession(storage_state="./notion_state.json")
    browser_cfg = build_browser_config(session)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from crawl4ai import BrowserConfig

LOGGER = logging.getLogger(__name__)

NOTION_COOKIE_NAME = "token_v2"
NOTION_COOKIE_DOMAINS = (".notion.so", ".notion.site")

Cookie = Dict[str, Any]


def _read_json(path: Union[str, Path], what: str) -> Any:
    resolved = Path(path).expanduser()
    if not resolved.is_file():
        raise FileNotFoundError(f"{what} not found: {resolved}")
    return json.loads(resolved.read_text(encoding="utf-8"))


@dataclass
class NotionSession:
    """Login material for rendering private pages; every field is optional.

    ``storage_state`` is either a path to a Playwright storage state JSON
    file or the already-loaded state.
    """

    notion_token: Optional[str] = None
    cookies: List[Cookie] = field(default_factory=list)
    storage_state: Union[str, Dict[str, Any], None] = None
    profile_dir: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.notion_token or self.cookies or self.storage_state or self.profile_dir)

    def session_cookies(self) -> List[Cookie]:
        """Extra cookies followed by ``token_v2`` for every Notion domain."""
        token_cookies = [
            {
                "name": NOTION_COOKIE_NAME,
                "value": self.notion_token,
                "domain": domain,
                "path": "/",
                "secure": True,
                "httpOnly": True,
            }
            for domain in NOTION_COOKIE_DOMAINS
            if self.notion_token
        ]
        return [*self.cookies, *token_cookies]

    def load_storage_state(self) -> Optional[Dict[str, Any]]:
        """Return the storage state, reading it from disk when given a path.

        Raises:
            FileNotFoundError: If the storage state path does not exist.
        """
        if not self.storage_state or isinstance(self.storage_state, dict):
            return self.storage_state or None
        state = _read_json(self.storage_state, "Storage state file")
        LOGGER.info("Loaded storage state from %s", self.storage_state)
        return state


def build_browser_config(session: Optional[NotionSession] = None) -> BrowserConfig:
    """Build a headless crawl4ai BrowserConfig logged in as ``session``."""
    if session is None or session.is_empty:
        return BrowserConfig(headless=True, use_persistent_context=False)

    kwargs: Dict[str, Any] = {"headless": True, "use_persistent_context": False}

    cookies = session.session_cookies()
    if cookies:
        kwargs["cookies"] = cookies
        LOGGER.info("Session: injecting %d cookie(s)", len(cookies))

    state = session.load_storage_state()
    if state:
        kwargs["storage_state"] = state
        LOGGER.info("Session: restoring browser storage state")

    if session.profile_dir:
        kwargs.update(user_data_dir=session.profile_dir, use_persistent_context=True)
        LOGGER.info("Session: using browser profile %s", session.profile_dir)

    return BrowserConfig(**kwargs)


def load_cookies_file(cookies_file: str) -> List[Cookie]:
    """Read a JSON list of cookies; a missing file yields no cookies."""
    try:
        cookies = _read_json(cookies_file, "Cookies file")
    except FileNotFoundError as exc:
        LOGGER.warning("%s", exc)
        return []
    LOGGER.info("Loaded %d cookie(s) from %s", len(cookies), cookies_file)
    return cookies


def load_session_from_env() -> Optional[NotionSession]:
    """Build a session from environment variables, or None if none are set.

    Supported variables:
        NOTIONMD_TOKEN_V2: Notion ``token_v2`` session cookie value.
        NOTIONMD_AUTH_STORAGE_STATE: Path to a storage state JSON file.
        NOTIONMD_AUTH_COOKIES_FILE: Path to a JSON list of cookies.
        NOTIONMD_AUTH_PROFILE: Path to a persistent browser profile directory.
    """
    cookies_file = os.environ.get("NOTIONMD_AUTH_COOKIES_FILE")
    session = NotionSession(
        notion_token=os.environ.get("NOTIONMD_TOKEN_V2") or None,
        cookies=load_cookies_file(cookies_file) if cookies_file else [],
        storage_state=os.environ.get("NOTIONMD_AUTH_STORAGE_STATE") or None,
        profile_dir=os.environ.get("NOTIONMD_AUTH_PROFILE") or None,
    )
    return None if session.is_empty else session


def load_session_from_file(path: str) -> NotionSession:
    """Read a session from a JSON object file.

    Recognised keys are ``notion_token``, ``cookies``, ``storage_state`` and
    ``profile_dir``.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    data = _read_json(path, "Session file")
    return NotionSession(
        notion_token=data.get("notion_token"),
        cookies=list(data.get("cookies") or []),
        storage_state=data.get("storage_state"),
        profile_dir=data.get("profile_dir"),
    )
