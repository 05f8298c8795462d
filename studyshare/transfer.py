"""
studyshare/transfer.py — fetch bytes straight from a signed URL.

The request goes to the object store, not to the API, so it uses a plain
client with no bearer header. Progress is reported per received chunk as
(received_bytes, total_bytes_or_None).
"""
import logging
from typing import Callable, Optional

import httpx

from studyshare.errors import NetworkFailure

log = logging.getLogger("study_share.transfer")

ProgressCallback = Callable[[int, Optional[int]], None]


async def fetch_bytes(
    http: httpx.AsyncClient,
    signed_url: str,
    *,
    progress: Optional[ProgressCallback] = None,
) -> bytes:
    """
    Stream-download a signed URL and return its raw bytes.

    Raises NetworkFailure on a non-2xx answer or a transport error.
    There is no retry; an expired URL has to be re-requested from the broker.
    """
    chunks = []
    received = 0
    try:
        async with http.stream("GET", signed_url, follow_redirects=True) as resp:
            if resp.status_code >= 400:
                raise NetworkFailure(
                    f"Failed to load file ({resp.status_code})",
                    status_code=resp.status_code,
                )
            length = resp.headers.get("Content-Length")
            total = int(length) if length and length.isdigit() else None
            async for chunk in resp.aiter_bytes():
                chunks.append(chunk)
                received += len(chunk)
                if progress:
                    progress(received, total)
    except httpx.HTTPError as exc:
        log.warning("Fetch failed: %s", exc)
        raise NetworkFailure(f"Network error while fetching file: {exc}") from exc

    log.debug("Fetched %d KB", received // 1024)
    return b"".join(chunks)
