"""Thin client for the Kubo (go-ipfs) RPC API.

Only the three calls the bridge needs are wrapped: ``add`` to upload a blob,
``cat`` to read it back and ``version`` as a liveness probe. Every RPC call
is a POST under ``/api/v0``.
"""

from __future__ import annotations

import json
import logging

import httpx

from app.domain.errors import StoreUnavailable

logger = logging.getLogger(__name__)


def normalize_api_url(url: str) -> str:
    # Kubo addresses are often given as host:port without a scheme.
    if "://" not in url:
        url = "http://" + url
    return url.rstrip("/")


class IpfsClient:
    def __init__(
        self,
        api_url: str,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_url = normalize_api_url(api_url)
        self._client = httpx.Client(
            base_url=self.api_url + "/api/v0",
            timeout=timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _post(self, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.post(path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"IPFS {path} failed: {e}") from e
        return response

    def add(self, data: bytes) -> str:
        response = self._post("/add", files={"file": ("blob", data, "application/octet-stream")})
        # add streams one JSON object per line; the last one describes the root.
        lines = [line for line in response.text.splitlines() if line.strip()]
        try:
            cid = json.loads(lines[-1])["Hash"]
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise StoreUnavailable(f"IPFS add returned an unexpected body: {response.text[:200]!r}") from e
        if not isinstance(cid, str) or not cid:
            raise StoreUnavailable("IPFS add returned an empty cid")
        return cid

    def cat(self, cid: str) -> bytes:
        return self._post("/cat", params={"arg": cid}).content

    def is_up(self) -> bool:
        try:
            self._post("/version")
        except StoreUnavailable as e:
            logger.warning("IPFS liveness check failed: %s", e)
            return False
        return True
