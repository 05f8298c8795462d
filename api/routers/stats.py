"""
api/routers/stats.py — GET /stats
Returns aggregate counts across papers and notes.
"""
from fastapi import APIRouter, Depends
import asyncpg

from api.dependencies.db import get_pool

router = APIRouter()


@router.get("/")
async def get_stats(pool: asyncpg.Pool = Depends(get_pool)) -> dict:
    """
    High-level statistics for the moderation dashboard.

    Returns, per collection (papers, notes):
    - total: all records
    - by_status: pending / approved / rejected counts
    - downloads: sum of download counters
    """
    rows = await pool.fetch(
        """
        SELECT 'papers' AS kind, status, COUNT(*) AS cnt, COALESCE(SUM(downloads), 0) AS dl
        FROM papers GROUP BY status
        UNION ALL
        SELECT 'notes'  AS kind, status, COUNT(*) AS cnt, COALESCE(SUM(downloads), 0) AS dl
        FROM notes GROUP BY status
        """
    )

    stats = {
        kind: {"total": 0, "downloads": 0, "by_status": {"pending": 0, "approved": 0, "rejected": 0}}
        for kind in ("papers", "notes")
    }
    for r in rows:
        entry = stats[r["kind"]]
        entry["by_status"][r["status"]] = r["cnt"]
        entry["total"] += r["cnt"]
        entry["downloads"] += r["dl"]

    return stats
