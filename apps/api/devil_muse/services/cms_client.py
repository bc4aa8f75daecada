from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx


_LOGGER = logging.getLogger(__name__)


@dataclass
class CmsQueryResult:
    items: list[dict[str, Any]] = field(default_factory=list)
    reason: str = "ok"

    @property
    def ok(self) -> bool:
        return self.reason == "ok"


class WixDataClient:
    """Query adapter for the Wix Data items API.

    Failures never propagate: transport errors, non-2xx responses and
    malformed bodies all come back as an empty result tagged with a reason.
    """

    def __init__(
        self,
        *,
        api_key: str,
        site_id: str,
        account_id: str,
        base_url: str,
        query_path: str,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.site_id = site_id
        self.account_id = account_id
        path = (query_path or "").strip() or "/wix-data/v2/items/query"
        if not path.startswith("/"):
            path = "/" + path
        self.endpoint = str(base_url).rstrip("/") + path
        self.timeout_seconds = float(timeout_seconds)
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Any, *, transport: httpx.AsyncBaseTransport | None = None) -> WixDataClient:
        return cls(
            api_key=settings.wix_api_key,
            site_id=settings.wix_site_id,
            account_id=settings.wix_account_id,
            base_url=settings.wix_base_url,
            query_path=settings.wix_query_path,
            timeout_seconds=settings.cms_timeout_seconds,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": str(self.api_key or ""),
            "wix-site-id": str(self.site_id or ""),
            "wix-account-id": str(self.account_id or ""),
        }

    async def query(self, collection: str, filter: dict[str, Any] | None = None, limit: int = 10) -> CmsQueryResult:
        body = {
            "dataCollectionId": collection,
            "query": {
                "filter": filter or {},
                "sort": [],
                "paging": {"limit": max(int(limit), 1)},
            },
        }
        _LOGGER.info("querying collection=%s", collection)

        timeout = httpx.Timeout(self.timeout_seconds)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                resp = await client.post(self.endpoint, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            _LOGGER.warning("collection=%s transport error: %s", collection, exc)
            return CmsQueryResult(reason="transport_error")

        if resp.status_code >= 400:
            _LOGGER.warning("collection=%s failed: %s %s", collection, resp.status_code, resp.text[:300])
            return CmsQueryResult(reason="http_error")

        try:
            payload = resp.json()
        except ValueError:
            _LOGGER.warning("collection=%s returned non-JSON body", collection)
            return CmsQueryResult(reason="malformed")
        if not isinstance(payload, dict):
            return CmsQueryResult(reason="malformed")

        raw_items = payload.get("dataItems")
        if raw_items is None:
            raw_items = []
        if not isinstance(raw_items, list):
            return CmsQueryResult(reason="malformed")

        items = [item for item in raw_items if isinstance(item, dict)]
        _LOGGER.info("collection=%s found %d items", collection, len(items))
        if not items:
            return CmsQueryResult(reason="empty")
        return CmsQueryResult(items=items)
