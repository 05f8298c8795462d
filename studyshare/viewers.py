"""
studyshare/viewers.py — where fetched PDFs end up on screen.

Two kinds of surface:

  Viewer          — the in-app preview. Given a live ObjectRef, shows it.
                    TerminalViewer renders the first pages as text.
  BrowsingContext — a separate window. It is opened *before* any bytes
                    are fetched and filled in afterwards; on failure it
                    shows the error instead of staying blank.
                    BrowserTab is a system-browser tab driven through a
                    self-refreshing local page.
"""
import html
import logging
import tempfile
import webbrowser
from pathlib import Path
from typing import Optional, Protocol

from rich.console import Console
from rich.panel import Panel

from studyshare.objects import ObjectRef, ObjectRegistry
from studyshare.renderer import RendererHandle, render_text
from studyshare.utils import console as default_console
from studyshare.utils import sanitize

log = logging.getLogger("study_share.viewers")


class Viewer(Protocol):
    async def show(self, obj: ObjectRef, title: str, registry: ObjectRegistry) -> None:
        ...


class BrowsingContext(Protocol):
    def populate(self, data: bytes, content_type: str) -> None:
        ...

    def show_error(self, message: str) -> None:
        ...


class TerminalViewer:
    """Print the text of the first pages inside a Rich panel."""

    def __init__(
        self,
        console: Optional[Console] = None,
        *,
        max_pages: int = 3,
        renderer: Optional[RendererHandle] = None,
    ) -> None:
        self._console = console or default_console
        self._max_pages = max_pages
        self._renderer = renderer

    async def show(self, obj: ObjectRef, title: str, registry: ObjectRegistry) -> None:
        text = await render_text(registry.read(obj), max_pages=self._max_pages, handle=self._renderer)
        self._console.print(
            Panel(
                text or "[dim](no extractable text)[/dim]",
                title=title,
                subtitle=f"{obj.size // 1024} KB · first {self._max_pages} page(s)",
            )
        )


_PAGE = """<!doctype html>
<html><head><meta charset="utf-8"><title>{title}</title>{refresh}</head>
<body style="margin:0;font-family:sans-serif">{body}</body></html>
"""


class BrowserTab:
    """
    A system-browser tab backed by a local HTML page.

    The tab is opened in __init__ showing a loading page that reloads
    itself every second; populate()/show_error() rewrite that page.
    """

    def __init__(self, title: str, *, directory: Optional[Path] = None, open_url=webbrowser.open) -> None:
        self.title = title
        self._dir = Path(directory or tempfile.mkdtemp(prefix="study-share-"))
        self.page = self._dir / "index.html"
        self.document: Optional[Path] = None
        self.error: Optional[str] = None
        self._write(
            f"<p style='padding:2em'>Loading {html.escape(title)}…</p>",
            refresh=True,
        )
        open_url(self.page.resolve().as_uri(), new=2)
        log.debug("Opened browser tab for %s", title)

    def _write(self, body: str, *, refresh: bool = False) -> None:
        self.page.write_text(
            _PAGE.format(
                title=html.escape(self.title),
                refresh='<meta http-equiv="refresh" content="1">' if refresh else "",
                body=body,
            ),
            encoding="utf-8",
        )

    def populate(self, data: bytes, content_type: str) -> None:
        suffix = ".pdf" if content_type == "application/pdf" else ".bin"
        self.document = self._dir / (sanitize(self.title) + suffix)
        self.document.write_bytes(data)
        self._write(
            f'<iframe src="{self.document.name}" title="{html.escape(self.title)}" '
            'style="border:0;width:100vw;height:100vh"></iframe>'
        )

    def show_error(self, message: str) -> None:
        self.error = message
        self._write(
            f"<p style='padding:2em;color:#b91c1c'>Could not open {html.escape(self.title)}: "
            f"{html.escape(message)}</p>"
        )


def open_browser_tab(title: str) -> BrowserTab:
    return BrowserTab(title)
