"""
api/services/broker.py — authorize a file read and mint a signed URL.

Flow
----
1. Bucket must be "papers" or "notes" (checked before any lookup).
2. Look the record up in the table named after the bucket.
3. The supplied path must equal the stored path — a valid id cannot be
   used to sign some other object.
4. Resolve the caller from the bearer token (anonymous if absent/invalid).
5. Allow when the record is approved or the caller owns it.
6. Ask S3 for a URL that expires after SIGNED_URL_TTL seconds.

The broker only reads. It never writes to the database and never retries;
every failure is raised as a BrokerError subclass.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from api.services import s3
from api.services.errors import Forbidden, InvalidInput, NotFound, PathMismatch, UpstreamFailure
from api.services.identity import IdentityResolver
from api.services.moderation import is_publicly_visible
from api.services.records import BUCKETS
from api.services.validation import INVALID_BUCKET, AccessRequest

log = logging.getLogger("study_share.broker")

RecordLookup = Callable[[str, str], Awaitable[Optional[dict]]]
UrlSigner = Callable[[str, str], str]


async def issue_signed_url(
    request: AccessRequest,
    token: Optional[str],
    *,
    lookup: RecordLookup,
    identity: IdentityResolver,
    sign: Optional[UrlSigner] = None,
) -> str:
    """
    Return a signed URL for request.file_path, or raise a BrokerError.

    lookup: async (bucket, record_id) → record dict or None
    sign:   blocking (bucket, key) → url; run in a worker thread since
            boto3 is synchronous. Defaults to s3.generate_presigned_url.
    """
    sign = sign or s3.generate_presigned_url
    bucket, file_path, item_id = request.bucket, request.file_path, request.item_id
    log.info("[SIGNED-URL] request bucket=%s item=%s", bucket, item_id)

    if bucket not in BUCKETS:
        raise InvalidInput(INVALID_BUCKET)

    try:
        record = await lookup(bucket, item_id)
    except Exception as exc:
        log.error("[SIGNED-URL] record lookup failed for %s/%s: %s", bucket, item_id, exc)
        raise UpstreamFailure("Failed to look up item") from exc

    if record is None:
        log.warning("[SIGNED-URL] item not found: %s/%s", bucket, item_id)
        raise NotFound("Item not found")

    if record["file_path"] != file_path:
        log.warning("[SIGNED-URL] file path mismatch for %s/%s", bucket, item_id)
        raise PathMismatch("File path mismatch")

    user_id = identity.resolve(token)
    is_owner = user_id is not None and user_id == record["owner_id"]
    is_approved = is_publicly_visible(record["status"])

    if not is_approved and not is_owner:
        log.warning(
            "[SIGNED-URL] access denied for %s/%s (status=%s, caller=%s)",
            bucket, item_id, record["status"], user_id or "anonymous",
        )
        raise Forbidden("This file is not available for public access")

    log.info("[SIGNED-URL] access granted — approved=%s owner=%s", is_approved, is_owner)

    try:
        url = await asyncio.to_thread(sign, bucket, file_path)
    except Exception as exc:
        log.error("[SIGNED-URL] failed to sign s3 key %s: %s", file_path, exc)
        raise UpstreamFailure("Failed to generate download URL") from exc

    return url
