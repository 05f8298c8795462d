"""
studyshare/broker_client.py — async client for the Study Share API.

Responsibilities
----------------
- Hold the caller's bearer token (if any) and attach it to every request.
- Ask the access broker for signed URLs, surfacing its error text verbatim.
- Send the download-counter increment after a completed download.
- No retries: every call is a single attempt and a failure ends it.
"""
import logging
from typing import Any, Optional

import httpx

from studyshare.errors import GENERIC_ACCESS_ERROR, AccessError, StudyShareError

log = logging.getLogger("study_share.broker_client")


class BrokerClient:
    """Thin async wrapper around the Study Share REST API."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ─── Context manager ──────────────────────────────────────────────────────

    async def __aenter__(self) -> "BrokerClient":
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_) -> None:
        if self._client:
            await self._client.aclose()

    # ─── Broker ───────────────────────────────────────────────────────────────

    async def request_access(self, bucket: str, file_path: str, record_id: str) -> str:
        """
        Return a signed URL for the record's file.

        Raises AccessError with the broker's own message (e.g. "This file is
        not available for public access"), or a generic message when the
        broker could not be reached or answered with something unreadable.
        """
        assert self._client, "BrokerClient must be used as an async context manager."
        try:
            resp = await self._client.post(
                "/get-signed-url",
                json={"bucket": bucket, "filePath": file_path, "itemId": record_id},
            )
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.error("Error getting signed URL for %s/%s: %s", bucket, record_id, exc)
            raise AccessError(GENERIC_ACCESS_ERROR) from exc

        if isinstance(data, dict) and data.get("error"):
            log.warning("Broker refused %s/%s (%d): %s", bucket, record_id, resp.status_code, data["error"])
            raise AccessError(str(data["error"]), status_code=resp.status_code)

        signed_url = data.get("signedUrl") if isinstance(data, dict) else None
        if resp.is_error or not signed_url:
            raise AccessError(GENERIC_ACCESS_ERROR, status_code=resp.status_code)
        return signed_url

    # ─── Record store ─────────────────────────────────────────────────────────

    async def increment_downloads(self, bucket: str, record_id: str) -> int:
        """Ask the record store to add one to the download counter."""
        data = await self._call("POST", f"/records/{bucket}/{record_id}/downloads")
        return data["downloads"]

    async def list_records(self, bucket: str, *, mine: bool = False, limit: int = 50) -> list:
        """Fetch a listing page; download counts are current as of this call."""
        params = {"limit": limit}
        if mine:
            params["mine"] = "true"
        return await self._call("GET", f"/records/{bucket}", params=params)

    async def _call(self, method: str, url: str, **kwargs) -> Any:
        assert self._client, "BrokerClient must be used as an async context manager."
        try:
            resp = await self._client.request(method, url, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise StudyShareError(
                f"{method} {url} failed ({exc.response.status_code})",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise StudyShareError(f"{method} {url} failed: {exc}") from exc
