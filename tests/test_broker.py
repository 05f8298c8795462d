"""
tests/test_broker.py — authorization rules of the signed-URL broker.

The record lookup, identity resolver and URL signer are all injected, so
these run with no database, no JWT secret and no AWS.

Test matrix:
  1. owner of a pending record            → signed URL
  2. non-owner of a pending record        → Forbidden
  3. approved record, anonymous caller    → signed URL
  4. approved record, any caller          → signed URL
  5. rejected record, non-owner           → Forbidden
  6. path mismatch (even owner/approved)  → PathMismatch, signer never called
  7. unknown bucket                       → InvalidInput before any lookup
  8. missing record                       → NotFound
  9. lookup raises                        → UpstreamFailure
 10. signer raises                        → UpstreamFailure
 11. URL is signed for the requested bucket + path, never anything else
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.services.broker import issue_signed_url
from api.services.errors import Forbidden, InvalidInput, NotFound, PathMismatch, UpstreamFailure
from api.services.validation import AccessRequest
from fakes import FakeIdentity

FILE_PATH  = "u1/123_exam.pdf"
SIGNED_URL = "https://s3.example.com/papers/u1/123_exam.pdf?X-Amz-Signature=abc"


def _make_record(status: str = "pending", owner: str = "u1", file_path: str = FILE_PATH) -> dict:
    return {"id": "p1", "file_path": file_path, "status": status, "owner_id": owner, "downloads": 0}


def _request(bucket: str = "papers", file_path: str = FILE_PATH, item_id: str = "p1") -> AccessRequest:
    return AccessRequest(bucket=bucket, file_path=file_path, item_id=item_id)


def _make_signer() -> MagicMock:
    return MagicMock(return_value=SIGNED_URL)


async def _issue(record, token=None, request=None, signer=None):
    return await issue_signed_url(
        request or _request(),
        token,
        lookup=AsyncMock(return_value=record),
        identity=FakeIdentity(),
        sign=signer or _make_signer(),
    )


# ── Ownership / approval ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_owner_gets_url_for_pending_record():
    assert await _issue(_make_record("pending"), token="token-u1") == SIGNED_URL


@pytest.mark.asyncio
async def test_other_user_forbidden_on_pending_record():
    with pytest.raises(Forbidden) as exc_info:
        await _issue(_make_record("pending"), token="token-u2")
    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "This file is not available for public access"


@pytest.mark.asyncio
async def test_anonymous_forbidden_on_pending_record():
    with pytest.raises(Forbidden):
        await _issue(_make_record("pending"), token=None)


@pytest.mark.asyncio
async def test_invalid_token_is_anonymous_not_an_error():
    # Approved → still served even though the token resolves to nobody
    assert await _issue(_make_record("approved"), token="garbage") == SIGNED_URL


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "token-u1", "token-u2"])
async def test_approved_record_served_to_everyone(token):
    assert await _issue(_make_record("approved"), token=token) == SIGNED_URL


@pytest.mark.asyncio
async def test_rejected_record_forbidden_for_non_owner():
    with pytest.raises(Forbidden):
        await _issue(_make_record("rejected"), token="token-u2")


@pytest.mark.asyncio
async def test_rejected_record_still_visible_to_owner():
    assert await _issue(_make_record("rejected"), token="token-u1") == SIGNED_URL


# ── Path / bucket / existence ─────────────────────────────────────────────────

@pytest.mark.asyncio
@pytest.mark.parametrize("status,token", [("approved", None), ("pending", "token-u1")])
async def test_path_mismatch_wins_over_authorization(status, token):
    signer = _make_signer()
    with pytest.raises(PathMismatch) as exc_info:
        await _issue(
            _make_record(status),
            token=token,
            request=_request(file_path="u1/other.pdf"),
            signer=signer,
        )
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "File path mismatch"
    signer.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_bucket_rejected_before_lookup():
    lookup = AsyncMock(return_value=_make_record("approved"))
    with pytest.raises(InvalidInput):
        await issue_signed_url(
            _request(bucket="videos"), None,
            lookup=lookup, identity=FakeIdentity(), sign=_make_signer(),
        )
    lookup.assert_not_called()


@pytest.mark.asyncio
async def test_missing_record_is_not_found():
    with pytest.raises(NotFound) as exc_info:
        await _issue(None, token="token-u1")
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Item not found"


@pytest.mark.asyncio
async def test_lookup_failure_is_upstream_failure():
    with pytest.raises(UpstreamFailure):
        await issue_signed_url(
            _request(), None,
            lookup=AsyncMock(side_effect=ConnectionError("db down")),
            identity=FakeIdentity(), sign=_make_signer(),
        )


@pytest.mark.asyncio
async def test_signer_failure_is_upstream_failure():
    signer = MagicMock(side_effect=RuntimeError("no credentials"))
    with pytest.raises(UpstreamFailure) as exc_info:
        await _issue(_make_record("approved"), signer=signer)
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Failed to generate download URL"


@pytest.mark.asyncio
async def test_signs_requested_bucket_and_path():
    signer = _make_signer()
    await _issue(_make_record("approved", file_path="u9/notes.pdf"),
                 request=_request(bucket="notes", file_path="u9/notes.pdf"),
                 signer=signer)
    signer.assert_called_once_with("notes", "u9/notes.pdf")
