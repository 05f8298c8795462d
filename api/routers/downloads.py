"""
api/routers/downloads.py — GET /downloads, the caller's download history.
"""
from fastapi import APIRouter, Depends, Query
import asyncpg

from api.dependencies.auth import require_user
from api.dependencies.db import get_pool
from api.services import records

router = APIRouter()


@router.get("/")
async def list_downloads(
    limit:  int = Query(50, ge=1, le=200),
    offset: int = Query(0,  ge=0),
    user_id: str = Depends(require_user),
    pool: asyncpg.Pool = Depends(get_pool),
) -> list:
    """Most recent first. Items may since have been removed."""
    return await records.list_download_history(pool, user_id, limit=limit, offset=offset)
