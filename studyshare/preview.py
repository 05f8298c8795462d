"""
studyshare/preview.py — the in-app preview surface.

One PreviewSession is one preview modal. It owns at most one ObjectRef at
a time:

    open()   → fetch bytes, create a reference, hand it to the viewer
    open()   again → the previous reference is revoked first
    close()  → the current reference is revoked

Used as an async context manager, close() also runs when the block exits,
so opening and closing any number of times leaves nothing outstanding.
"""
import logging
from typing import Optional

import httpx

from studyshare.errors import StudyShareError
from studyshare.objects import PDF, ObjectRef, ObjectRegistry
from studyshare.objects import registry as default_registry
from studyshare.state import RequestState
from studyshare.transfer import fetch_bytes
from studyshare.viewers import Viewer

log = logging.getLogger("study_share.preview")


class PreviewSession:
    def __init__(
        self,
        viewer: Viewer,
        http: httpx.AsyncClient,
        *,
        registry: Optional[ObjectRegistry] = None,
    ) -> None:
        self._viewer = viewer
        self._http = http
        self._registry = registry or default_registry
        self._current: Optional[ObjectRef] = None
        self.state = RequestState()
        self.title: Optional[str] = None
        # Set after a failure: the UI offers "open in new tab" instead
        self.offer_new_context = False

    async def __aenter__(self) -> "PreviewSession":
        return self

    async def __aexit__(self, *_) -> None:
        self.close()

    @property
    def current(self) -> Optional[ObjectRef]:
        return self._current

    def _release(self) -> None:
        if self._current is not None:
            self._registry.revoke(self._current)
            self._current = None

    def fail(self, message: str) -> None:
        """Put the surface in its error state without a fetch (e.g. access refused)."""
        self._release()
        self.state.fail(message)
        self.offer_new_context = True

    async def open(self, signed_url: str, title: str) -> Optional[ObjectRef]:
        """
        Load a signed URL into the preview.

        Returns the live reference on success, None on failure (the message
        is in state.error). Never raises StudyShareError.
        """
        self._release()
        self.title = title
        self.offer_new_context = False
        self.state.begin()

        try:
            data = await fetch_bytes(self._http, signed_url, progress=self.state.progress)
        except StudyShareError as exc:
            log.warning("Preview of %r failed: %s", title, exc.message)
            self.fail(exc.message)
            return None

        self._current = self._registry.create(data, PDF)
        try:
            await self._viewer.show(self._current, title, self._registry)
        except Exception as exc:
            log.warning("Viewer could not display %r: %s", title, exc)
            self.fail(f"Failed to load PDF: {exc}")
            return None

        self.state.succeed()
        return self._current

    def close(self) -> None:
        self._release()
        self.offer_new_context = False
        self.state.reset()
