"""
tests/test_viewers.py — terminal preview and browser-tab context.
"""
import types
from pathlib import Path

import pytest
from rich.console import Console

from studyshare.objects import ObjectRegistry
from studyshare.renderer import RendererHandle
from studyshare.viewers import BrowserTab, TerminalViewer


def _fake_renderer() -> RendererHandle:
    module = types.ModuleType("fake_pdf")
    module.extract_text = lambda fp, maxpages=0: "Question 1: integrate x^2"
    return RendererHandle(lambda: module)


@pytest.mark.asyncio
async def test_terminal_viewer_prints_page_text():
    console = Console(record=True, width=80)
    registry = ObjectRegistry()
    obj = registry.create(b"%PDF-1.4 fake")

    await TerminalViewer(console, renderer=_fake_renderer()).show(obj, "Calculus II exam", registry)

    output = console.export_text()
    assert "Calculus II exam" in output
    assert "Question 1: integrate x^2" in output


def test_browser_tab_opens_loading_page_immediately(tmp_path: Path):
    opened = []
    tab = BrowserTab("Exam", directory=tmp_path, open_url=lambda url, new=0: opened.append(url))

    assert opened == [tab.page.resolve().as_uri()]
    page = tab.page.read_text(encoding="utf-8")
    assert "Loading Exam" in page
    assert 'http-equiv="refresh"' in page


def test_browser_tab_populate_embeds_document(tmp_path: Path):
    tab = BrowserTab("Exam", directory=tmp_path, open_url=lambda url, new=0: None)
    tab.populate(b"%PDF-1.4 fake", "application/pdf")

    assert tab.document.read_bytes() == b"%PDF-1.4 fake"
    page = tab.page.read_text(encoding="utf-8")
    assert "<iframe" in page and tab.document.name in page
    assert "refresh" not in page


def test_browser_tab_shows_error_inline(tmp_path: Path):
    tab = BrowserTab("Exam <1>", directory=tmp_path, open_url=lambda url, new=0: None)
    tab.show_error("Failed to load file (403)")

    page = tab.page.read_text(encoding="utf-8")
    assert "Failed to load file (403)" in page
    assert "Exam &lt;1&gt;" in page
    assert tab.error == "Failed to load file (403)"
