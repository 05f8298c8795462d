"""
tests/test_preview.py — temporary byte objects and the preview surface.

Byte fetches go through httpx.MockTransport; the viewer is a recorder.

Test matrix:
  1. registry.temporary releases on success and on error
  2. preview open → close leaves zero outstanding references
  3. N sequential open/close cycles never accumulate references
  4. re-opening without closing replaces (revokes) the previous reference
  5. fetch failure → error flag, offer_new_context, no reference left
  6. viewer failure → same, reference revoked
  7. async-with closes the preview on exit
"""
import httpx
import pytest

from studyshare.objects import ObjectRegistry
from studyshare.preview import PreviewSession
from fakes import RecordingViewer

PDF_BYTES  = b"%PDF-1.4 fake content"
SIGNED_URL = "https://s3.example.com/papers/u1/123_exam.pdf?X-Amz-Signature=abc"


def _make_http(status: int = 200, body: bytes = PDF_BYTES) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=body)
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ── Registry ──────────────────────────────────────────────────────────────────

def test_temporary_reference_released_after_block():
    registry = ObjectRegistry()
    with registry.temporary(PDF_BYTES) as obj:
        assert registry.outstanding == 1
        assert registry.read(obj) == PDF_BYTES
    assert registry.outstanding == 0
    with pytest.raises(LookupError):
        registry.read(obj)


def test_temporary_reference_released_on_error():
    registry = ObjectRegistry()
    with pytest.raises(RuntimeError):
        with registry.temporary(PDF_BYTES):
            raise RuntimeError("disk full")
    assert registry.outstanding == 0


def test_revoke_is_idempotent():
    registry = ObjectRegistry()
    obj = registry.create(PDF_BYTES)
    registry.revoke(obj)
    registry.revoke(obj)
    assert registry.outstanding == 0
    assert not registry.is_live(obj)


# ── Preview ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_open_then_close_leaves_nothing_outstanding():
    registry = ObjectRegistry()
    viewer = RecordingViewer()
    async with _make_http() as http:
        preview = PreviewSession(viewer, http, registry=registry)
        obj = await preview.open(SIGNED_URL, "Calculus II exam")

        assert obj is not None
        assert obj.content_type == "application/pdf"
        assert registry.outstanding == 1
        assert preview.state.succeeded and not preview.state.loading
        assert viewer.shown == [(obj.ref, "Calculus II exam", PDF_BYTES)]

        preview.close()

    assert registry.outstanding == 0
    assert preview.current is None


@pytest.mark.asyncio
async def test_repeated_previews_do_not_accumulate():
    registry = ObjectRegistry()
    async with _make_http() as http:
        preview = PreviewSession(RecordingViewer(), http, registry=registry)
        for _ in range(25):
            await preview.open(SIGNED_URL, "exam")
            assert registry.outstanding == 1
            preview.close()
            assert registry.outstanding == 0


@pytest.mark.asyncio
async def test_reopen_replaces_previous_reference():
    registry = ObjectRegistry()
    async with _make_http() as http:
        preview = PreviewSession(RecordingViewer(), http, registry=registry)
        first = await preview.open(SIGNED_URL, "first")
        second = await preview.open(SIGNED_URL, "second")

        assert not registry.is_live(first)
        assert registry.is_live(second)
        assert registry.outstanding == 1
        preview.close()

    assert registry.outstanding == 0


@pytest.mark.asyncio
async def test_fetch_failure_sets_error_and_offers_new_context():
    registry = ObjectRegistry()
    viewer = RecordingViewer()
    async with _make_http(status=403, body=b"<Error>AccessDenied</Error>") as http:
        preview = PreviewSession(viewer, http, registry=registry)
        assert await preview.open(SIGNED_URL, "exam") is None

    assert preview.state.error == "Failed to load file (403)"
    assert not preview.state.loading
    assert preview.offer_new_context
    assert viewer.shown == []
    assert registry.outstanding == 0


@pytest.mark.asyncio
async def test_viewer_failure_releases_reference():
    registry = ObjectRegistry()
    async with _make_http() as http:
        preview = PreviewSession(RecordingViewer(fail=True), http, registry=registry)
        assert await preview.open(SIGNED_URL, "exam") is None

    assert preview.state.error.startswith("Failed to load PDF")
    assert preview.offer_new_context
    assert registry.outstanding == 0


@pytest.mark.asyncio
async def test_context_manager_closes_preview():
    registry = ObjectRegistry()
    async with _make_http() as http:
        async with PreviewSession(RecordingViewer(), http, registry=registry) as preview:
            await preview.open(SIGNED_URL, "exam")
            assert registry.outstanding == 1

    assert registry.outstanding == 0
