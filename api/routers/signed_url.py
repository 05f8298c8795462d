"""
api/routers/signed_url.py — POST /get-signed-url

The only way a client can read a paper or note PDF. Body:
    {"bucket": "papers" | "notes", "filePath": str, "itemId": str}
plus an optional `Authorization: Bearer <token>` header.

200 → {"signedUrl": ...}; every failure → {"error": ...} with 400/403/404/500.
"""
import json
import logging
from typing import Optional

import asyncpg
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from api.dependencies.auth import get_identity, get_token
from api.dependencies.db import get_pool
from api.services import records
from api.services.broker import issue_signed_url
from api.services.errors import BrokerError
from api.services.identity import IdentityResolver
from api.services.validation import INVALID_BODY, validate_access_request

log = logging.getLogger("study_share.broker")

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)


@router.options("")
async def preflight() -> PlainTextResponse:
    """Bare OPTIONS (no CORS request headers) still gets a permissive answer."""
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.post("")
async def get_signed_url(
    request: Request,
    token: Optional[str] = Depends(get_token),
    identity: IdentityResolver = Depends(get_identity),
    pool: asyncpg.Pool = Depends(get_pool),
) -> JSONResponse:
    """
    Authorize the caller against the record and return a 1-hour signed URL.

    Approved items are readable by anyone, including anonymous callers;
    pending/rejected items only by their owner.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        log.warning("[SIGNED-URL] unreadable request body")
        return _error(400, INVALID_BODY)

    checked = validate_access_request(body)
    if not checked.ok:
        log.warning("[SIGNED-URL] rejected request: %s", checked.message)
        return _error(400, checked.message)

    async def lookup(bucket: str, item_id: str) -> Optional[dict]:
        return await records.get_record(pool, bucket, item_id)

    try:
        url = await issue_signed_url(checked.value, token, lookup=lookup, identity=identity)
    except BrokerError as exc:
        return _error(exc.status_code, exc.message)
    except Exception:
        log.exception("[SIGNED-URL] unexpected error")
        return _error(500, "Internal server error")

    return JSONResponse({"signedUrl": url}, headers=CORS_HEADERS)
