"""
studyshare/retrieval.py — view / download / open a paper or note.

Flow
----
1. Ask the broker for a signed URL (its refusal message is shown as-is).
2. Fetch the bytes directly from the object store.
3. Preview them, save them to disk, or hand them to a new browser tab.
4. After a completed download only: fire one download-counter increment.
   It runs in the background; if it fails it is logged and nothing else
   happens — the file is already saved, and the new count shows up on the
   next listing load.

Every operation is one attempt. Its phase (loading / error) is exposed
on `state`; nothing is retried.
"""
import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, Set

import httpx

from studyshare.broker_client import BrokerClient
from studyshare.errors import StudyShareError
from studyshare.objects import PDF, ObjectRegistry
from studyshare.objects import registry as default_registry
from studyshare.preview import PreviewSession
from studyshare.state import RequestState
from studyshare.transfer import ProgressCallback, fetch_bytes
from studyshare.utils import available_path, get_download_root
from studyshare.viewers import BrowsingContext, TerminalViewer, Viewer, open_browser_tab

log = logging.getLogger("study_share.retrieval")

ContextOpener = Callable[[str], BrowsingContext]


# ─── Single steps ──────────────────────────────────────────────────────────────

async def download_to_disk(
    http: httpx.AsyncClient,
    signed_url: str,
    filename: str,
    *,
    directory: Optional[Path] = None,
    registry: Optional[ObjectRegistry] = None,
    progress: Optional[ProgressCallback] = None,
) -> Path:
    """
    Fetch a signed URL and save it under `directory` as `filename`.

    The bytes are held in a temporary reference only while being written;
    it is released whether or not the write succeeds. An existing file is
    never overwritten — "name (1).pdf" and so on are used instead.
    """
    registry = registry or default_registry
    directory = Path(directory) if directory else get_download_root()
    directory.mkdir(parents=True, exist_ok=True)

    data = await fetch_bytes(http, signed_url, progress=progress)
    with registry.temporary(data, PDF) as obj:
        path = available_path(directory, filename)
        path.write_bytes(registry.read(obj))

    log.info("[SAVED] %s (%d KB)", path, len(data) // 1024)
    return path


async def fill_context(context: BrowsingContext, http: httpx.AsyncClient, signed_url: str) -> None:
    """Fetch into an already-open context; show the error there on failure."""
    try:
        data = await fetch_bytes(http, signed_url)
    except StudyShareError as exc:
        context.show_error(exc.message)
        raise
    context.populate(data, PDF)


async def open_in_new_context(
    http: httpx.AsyncClient,
    signed_url: str,
    title: str,
    *,
    opener: ContextOpener = open_browser_tab,
) -> BrowsingContext:
    """
    Open a new context immediately, then fill it with the file.

    The context is opened before the first await so it is tied to the
    user's action, not to a later callback.
    """
    context = opener(title)
    await fill_context(context, http, signed_url)
    return context


# ─── Pipeline ─────────────────────────────────────────────────────────────────

class RetrievalPipeline:
    """
    The retrieval actions a listing offers for one signed-in (or anonymous)
    user: view, download, open in a new context.

    Usage:
        async with BrokerClient(api_url, token) as broker, httpx.AsyncClient() as http:
            pipeline = RetrievalPipeline(broker, http)
            await pipeline.download("papers", "u1/123_exam.pdf", "p1", "Exam.pdf")
            await pipeline.aclose()
    """

    def __init__(
        self,
        broker: BrokerClient,
        http: httpx.AsyncClient,
        *,
        viewer: Optional[Viewer] = None,
        opener: ContextOpener = open_browser_tab,
        registry: Optional[ObjectRegistry] = None,
        download_root: Optional[Path] = None,
    ) -> None:
        self._broker = broker
        self._http = http
        self._opener = opener
        self._registry = registry or default_registry
        self._download_root = download_root
        self._increments: Set[asyncio.Task] = set()
        self.state = RequestState()
        self.preview = PreviewSession(viewer or TerminalViewer(), http, registry=self._registry)

    async def _authorize(self, bucket: str, file_path: str, record_id: str) -> Optional[str]:
        try:
            return await self._broker.request_access(bucket, file_path, record_id)
        except StudyShareError as exc:
            self.state.fail(exc.message)
            return None

    # ── View ────────────────────────────────────────────────────────────────

    async def view(self, bucket: str, file_path: str, record_id: str, title: str) -> bool:
        """Show the file in the preview surface. False (with state.error) on failure."""
        self.state.begin()
        signed_url = await self._authorize(bucket, file_path, record_id)
        if signed_url is None:
            self.preview.fail(self.state.error)
            return False

        if await self.preview.open(signed_url, title) is None:
            self.state.fail(self.preview.state.error)
            return False
        self.state.succeed()
        return True

    def close_preview(self) -> None:
        self.preview.close()

    # ── Download ────────────────────────────────────────────────────────────

    async def download(
        self,
        bucket: str,
        file_path: str,
        record_id: str,
        filename: str,
        *,
        progress: Optional[ProgressCallback] = None,
    ) -> Optional[Path]:
        """Save the file to disk, then count the download. None on failure."""
        self.state.begin()
        signed_url = await self._authorize(bucket, file_path, record_id)
        if signed_url is None:
            return None

        def on_progress(received: int, total: Optional[int]) -> None:
            self.state.progress(received, total)
            if progress:
                progress(received, total)

        try:
            path = await download_to_disk(
                self._http, signed_url, filename,
                directory=self._download_root,
                registry=self._registry,
                progress=on_progress,
            )
        except StudyShareError as exc:
            self.state.fail(exc.message)
            return None
        except OSError as exc:
            self.state.fail(f"Could not save {filename}: {exc}")
            return None

        self.state.succeed()
        self._schedule_increment(bucket, record_id)
        return path

    def _schedule_increment(self, bucket: str, record_id: str) -> None:
        task = asyncio.create_task(self._increment(bucket, record_id))
        self._increments.add(task)
        task.add_done_callback(self._increments.discard)

    async def _increment(self, bucket: str, record_id: str) -> None:
        try:
            count = await self._broker.increment_downloads(bucket, record_id)
            log.debug("[DOWNLOADS] %s/%s now at %d", bucket, record_id, count)
        except Exception as exc:
            log.warning("[DOWNLOADS] could not count download of %s/%s: %s", bucket, record_id, exc)

    # ── Open in new context ─────────────────────────────────────────────────

    async def open_external(
        self,
        bucket: str,
        file_path: str,
        record_id: str,
        title: str,
    ) -> Optional[BrowsingContext]:
        """Open a new context right away, then authorize and fill it."""
        self.state.begin()
        context = self._opener(title)

        signed_url = await self._authorize(bucket, file_path, record_id)
        if signed_url is None:
            context.show_error(self.state.error)
            return None

        try:
            await fill_context(context, self._http, signed_url)
        except StudyShareError as exc:
            self.state.fail(exc.message)
            return None

        self.state.succeed()
        return context

    # ── Shutdown ────────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        """Close the preview and let in-flight counter increments finish."""
        self.preview.close()
        if self._increments:
            await asyncio.gather(*self._increments, return_exceptions=True)
