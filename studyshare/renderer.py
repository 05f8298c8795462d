"""
studyshare/renderer.py — lazily loaded PDF rendering library.

pdfminer is imported once per process, on first use, in a worker thread.
Concurrent first callers all wait on the same in-flight load instead of
each starting their own. Users hold the handle through `session()`;
`refs` counts current holders. The library stays loaded when it drops
to zero.
"""
import asyncio
import importlib
import logging
from contextlib import asynccontextmanager
from io import BytesIO
from types import ModuleType
from typing import AsyncIterator, Callable, Optional

log = logging.getLogger("study_share.renderer")


def _load_pdfminer() -> ModuleType:
    """Blocking import — called inside asyncio.to_thread."""
    return importlib.import_module("pdfminer.high_level")


class RendererHandle:
    def __init__(self, loader: Callable[[], ModuleType] = _load_pdfminer) -> None:
        self._loader = loader
        self._library: Optional[ModuleType] = None
        self._loading: Optional[asyncio.Future] = None
        self._refs = 0
        self.load_count = 0

    @property
    def refs(self) -> int:
        return self._refs

    @property
    def loaded(self) -> bool:
        return self._library is not None

    async def _load(self) -> ModuleType:
        library = await asyncio.to_thread(self._loader)
        self._library = library
        self.load_count += 1
        log.info("PDF renderer loaded")
        return library

    async def acquire(self) -> ModuleType:
        if self._library is None:
            if self._loading is None or self._loading.done():
                self._loading = asyncio.ensure_future(self._load())
            try:
                await asyncio.shield(self._loading)
            except Exception:
                # Next caller starts a fresh load
                self._loading = None
                raise
        self._refs += 1
        return self._library

    def release(self) -> None:
        if self._refs > 0:
            self._refs -= 1

    @asynccontextmanager
    async def session(self) -> AsyncIterator[ModuleType]:
        library = await self.acquire()
        try:
            yield library
        finally:
            self.release()


# Shared by every viewer in the process
renderer = RendererHandle()


async def render_text(data: bytes, *, max_pages: int = 3, handle: Optional[RendererHandle] = None) -> str:
    """Extract the text of the first `max_pages` pages of a PDF."""
    handle = handle or renderer
    async with handle.session() as library:
        text = await asyncio.to_thread(library.extract_text, BytesIO(data), maxpages=max_pages)
    return (text or "").strip()
