"""
api/services/records.py — asyncpg queries for the record store.

Design:
  - One table per resource kind: `papers` and `notes`. The bucket name a
    client sends is the table name, so it is checked against BUCKETS
    before it is ever interpolated into SQL.
  - All public functions accept the pool as first argument (dependency
    injection → easy to test / mock).
  - The download counter is only ever changed by a single UPDATE
    (downloads = downloads + 1), never read-modify-write.
"""
import logging
from typing import Optional

import asyncpg

log = logging.getLogger("study_share.records")

BUCKETS = ("papers", "notes")

# Singular item_type stored in download_history
ITEM_TYPES = {"papers": "paper", "notes": "note"}

_RECORD_COLUMNS = """
    id::text AS id, user_id::text AS owner_id, title, subject, level,
    description, file_path, file_size, status, downloads, created_at
"""


def _table(bucket: str) -> str:
    if bucket not in BUCKETS:
        raise ValueError(f"Unknown bucket {bucket!r}")
    return bucket


# ─── Resource records ──────────────────────────────────────────────────────────

async def get_record(
    pool: asyncpg.Pool,
    bucket: str,
    record_id: str,
) -> Optional[dict]:
    """Return a single record by id, or None when it does not exist."""
    try:
        row = await pool.fetchrow(
            f"SELECT {_RECORD_COLUMNS} FROM {_table(bucket)} WHERE id = $1::uuid",
            record_id,
        )
    except asyncpg.exceptions.DataError:
        # Not a UUID, cannot match any row
        return None
    return dict(row) if row else None


async def list_records(
    pool: asyncpg.Pool,
    bucket: str,
    *,
    status: Optional[str] = "approved",
    owner_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> list:
    """
    Paginated listing, newest first.

    status=None lists every status (used together with owner_id for a
    user's own uploads).
    """
    try:
        rows = await pool.fetch(
            f"""
            SELECT {_RECORD_COLUMNS}
            FROM {_table(bucket)}
            WHERE ($1::text IS NULL OR status  = $1)
              AND ($2::uuid IS NULL OR user_id = $2::uuid)
            ORDER BY created_at DESC
            LIMIT $3 OFFSET $4
            """,
            status, owner_id, limit, offset,
        )
    except asyncpg.exceptions.DataError:
        # owner_id is not a UUID, so it owns nothing
        return []
    return [dict(r) for r in rows]


async def increment_downloads(
    pool: asyncpg.Pool,
    bucket: str,
    record_id: str,
) -> Optional[int]:
    """Atomically bump the download counter; return the new value or None."""
    try:
        count = await pool.fetchval(
            f"""
            UPDATE {_table(bucket)}
               SET downloads = downloads + 1
             WHERE id = $1::uuid
            RETURNING downloads
            """,
            record_id,
        )
    except asyncpg.exceptions.DataError:
        return None
    return count


async def set_status(
    pool: asyncpg.Pool,
    bucket: str,
    record_id: str,
    status: str,
) -> Optional[dict]:
    """Write a new moderation status; return the updated record or None."""
    row = await pool.fetchrow(
        f"""
        UPDATE {_table(bucket)}
           SET status = $2, updated_at = NOW()
         WHERE id = $1::uuid
        RETURNING {_RECORD_COLUMNS}
        """,
        record_id, status,
    )
    return dict(row) if row else None


# ─── Roles ─────────────────────────────────────────────────────────────────────

async def is_admin(pool: asyncpg.Pool, user_id: str) -> bool:
    """True when the user holds the `admin` role."""
    found = await pool.fetchval(
        """
        SELECT EXISTS (
            SELECT 1 FROM user_roles WHERE user_id = $1::uuid AND role = 'admin'
        )
        """,
        user_id,
    )
    return bool(found)


# ─── Download history ──────────────────────────────────────────────────────────

async def add_download_history(
    pool: asyncpg.Pool,
    *,
    user_id: str,
    bucket: str,
    record: dict,
) -> None:
    """Append one row to the caller's download history."""
    await pool.execute(
        """
        INSERT INTO download_history (user_id, item_id, item_type, item_title, item_subject, item_level)
        VALUES ($1::uuid, $2::uuid, $3, $4, $5, $6)
        """,
        user_id, record["id"], ITEM_TYPES[bucket],
        record.get("title"), record.get("subject"), record.get("level"),
    )


async def list_download_history(
    pool: asyncpg.Pool,
    user_id: str,
    *,
    limit: int = 50,
    offset: int = 0,
) -> list:
    """Most recent downloads first."""
    try:
        rows = await pool.fetch(
            """
            SELECT id::text AS id, item_id::text AS item_id, item_type,
                   item_title, item_subject, item_level, created_at
            FROM download_history
            WHERE user_id = $1::uuid
            ORDER BY created_at DESC
            LIMIT $2 OFFSET $3
            """,
            user_id, limit, offset,
        )
    except asyncpg.exceptions.DataError:
        return []
    return [dict(r) for r in rows]
