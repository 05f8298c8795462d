"""
api/routers/records.py — paper/note listing, download counter, moderation.
"""
import json
import logging
from typing import Optional

import asyncpg
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.dependencies.auth import current_user, require_user
from api.dependencies.db import get_pool
from api.services import records
from api.services.moderation import IllegalTransition, check_transition
from api.services.validation import validate_status_update

log = logging.getLogger("study_share.records")

router = APIRouter()


def _check_bucket(bucket: str) -> str:
    if bucket not in records.BUCKETS:
        raise HTTPException(status_code=404, detail=f"Unknown collection {bucket!r}.")
    return bucket


@router.get("/{bucket}")
async def list_records(
    bucket: str,
    mine: bool = Query(False, description="List the caller's own uploads (any status)"),
    limit:  int = Query(50, ge=1, le=200),
    offset: int = Query(0,  ge=0),
    user_id: Optional[str] = Depends(current_user),
    pool: asyncpg.Pool = Depends(get_pool),
) -> list:
    """
    Paginated listing, newest first. Download counts are read fresh here —
    this is where a client sees the effect of its increments.
    """
    _check_bucket(bucket)
    if mine:
        if user_id is None:
            raise HTTPException(status_code=401, detail="Authentication required.")
        return await records.list_records(
            pool, bucket, status=None, owner_id=user_id, limit=limit, offset=offset,
        )
    return await records.list_records(pool, bucket, limit=limit, offset=offset)


@router.post("/{bucket}/{record_id}/downloads")
async def increment_downloads(
    bucket: str,
    record_id: str,
    user_id: Optional[str] = Depends(current_user),
    pool: asyncpg.Pool = Depends(get_pool),
) -> dict:
    """
    Atomically add one to the record's download counter.

    Signed-in callers also get a download_history row.
    """
    _check_bucket(bucket)
    count = await records.increment_downloads(pool, bucket, record_id)
    if count is None:
        raise HTTPException(status_code=404, detail="Item not found.")

    if user_id is not None:
        record = await records.get_record(pool, bucket, record_id)
        if record is not None:
            await records.add_download_history(pool, user_id=user_id, bucket=bucket, record=record)

    log.info("[DOWNLOADS] %s/%s → %d", bucket, record_id, count)
    return {"id": record_id, "downloads": count}


@router.patch("/{bucket}/{record_id}/status")
async def update_status(
    bucket: str,
    record_id: str,
    request: Request,
    user_id: str = Depends(require_user),
    pool: asyncpg.Pool = Depends(get_pool),
) -> dict:
    """
    Moderate a record. Admin only.

    pending → approved | rejected, and approved | rejected → pending.
    """
    _check_bucket(bucket)
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    checked = validate_status_update(body)
    if not checked.ok:
        raise HTTPException(status_code=400, detail=checked.message)

    if not await records.is_admin(pool, user_id):
        log.warning("[MODERATION] non-admin %s tried to moderate %s/%s", user_id, bucket, record_id)
        raise HTTPException(status_code=403, detail="Admin role required.")

    record = await records.get_record(pool, bucket, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Item not found.")

    try:
        check_transition(record["status"], checked.value)
    except IllegalTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    updated = await records.set_status(pool, bucket, record_id, checked.value)
    if updated is None:
        raise HTTPException(status_code=404, detail="Item not found.")

    log.info("[MODERATION] %s/%s %s → %s by %s", bucket, record_id, record["status"], checked.value, user_id)
    return updated
