"""Shared fixtures and strict test-accounting guardrails."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pytest


class NotionHtml:
    """Builds HTML fragments shaped like Notion's rendered page DOM."""

    @staticmethod
    def block(
        kind: str,
        text: str = "",
        *nested: str,
        inside: bool = False,
        marker: str = "",
        extra: str = "",
    ) -> str:
        """One selectable block.

        Nested blocks go into a sibling children container, or into the
        text's flex region when ``inside`` is set. ``marker`` is row content
        placed before the text (bullet, checkbox, icon); ``extra`` is appended
        inside the block after everything else.
        """
        carrier = f'<div contenteditable="true" data-content-editable-leaf="true">{text}</div>'
        nested_html = "".join(nested)
        if inside:
            region = (
                '<div style="flex: 1 1 0px; display: flex; flex-direction: column">'
                f"<div>{carrier}</div><div>{nested_html}</div></div>"
            )
            body = f'<div style="display: flex">{marker}{region}</div>'
        else:
            region = f'<div style="flex-grow: 1">{carrier}</div>'
            body = f'<div style="display: flex">{marker}{region}</div>'
            if nested:
                body += f'<div class="notion-block-children">{nested_html}</div>'
        return (
            f'<div class="notion-selectable notion-{kind}-block">{body}{extra}</div>'
        )

    @staticmethod
    def divider() -> str:
        return (
            '<div class="notion-selectable notion-divider-block">'
            '<div role="separator"></div></div>'
        )

    @staticmethod
    def code(source: str, language_label: str = "Plain Text") -> str:
        return (
            '<div class="notion-selectable notion-code-block">'
            f'<div><div role="button">{language_label}</div></div>'
            '<div class="line-numbers"><div contenteditable="true">'
            f"<code>{source}</code></div></div></div>"
        )

    @staticmethod
    def todo(text: str, *nested: str, checked: bool = False, aria: bool = False) -> str:
        if aria:
            state = "true" if checked else "false"
            box = f'<div role="checkbox" aria-checked="{state}"></div>'
        else:
            box = f'<input type="checkbox"{" checked" if checked else ""}>'
        return NotionHtml.block(
            "to_do", text, *nested, marker=f'<div class="checkboxSquare">{box}</div>'
        )

    @staticmethod
    def callout(text: str, icon_html: str = "") -> str:
        icon = f'<div class="notion-record-icon">{icon_html}</div>' if icon_html else ""
        return NotionHtml.block("callout", text, marker=icon)

    @staticmethod
    def page(*blocks: str, title: Optional[str] = "Test Page") -> str:
        title_region = ""
        if title is not None:
            title_region = (
                '<div class="layout-content"><div class="notion-page-block">'
                f'<h1 contenteditable="true">{title}</h1></div></div>'
            )
        return (
            "<html><head><title>Browser Title</title></head><body>"
            f'<div class="notion-frame">{title_region}'
            '<div class="layout-content"><div class="notion-page-content">'
            f'{"".join(blocks)}</div></div></div></body></html>'
        )


@pytest.fixture
def notion() -> type[NotionHtml]:
    return NotionHtml


@dataclass
class _TestAccounting:
    deselected: int = 0
    skipped: int = 0
    xfailed: int = 0
    xpassed: int = 0


_ACCOUNTING = _TestAccounting()


def pytest_deselected(items):  # pragma: no cover - pytest hook
    _ACCOUNTING.deselected += len(items)


def pytest_runtest_logreport(report):  # pragma: no cover - pytest hook
    if report.when not in {"setup", "call"}:
        return

    if getattr(report, "wasxfail", False):
        if report.outcome == "skipped":
            _ACCOUNTING.xfailed += 1
        elif report.outcome == "passed":
            _ACCOUNTING.xpassed += 1
        return

    if report.outcome == "skipped":
        _ACCOUNTING.skipped += 1


def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - pytest hook
    violations = [
        f"{name}={count}"
        for name, count in vars(_ACCOUNTING).items()
        if count
    ]
    if not violations:
        return

    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.write_sep(
            "=",
            f"Strict guard failed: test accounting violations ({', '.join(violations)})",
        )
    session.exitstatus = 1
