"""Scroll-based access to an Elasticsearch index over its REST API.

The cluster address is resolved via ``app.settings`` (``APP_SERVER``,
``APP_PORT``, ``APP_SCHEME``). This module keeps request building,
error translation and response parsing in one place so the fetcher only
ever sees ``ScrollPage`` objects or a ``BackendError``.

Nothing here retries: an expired scroll lease or a refused request ends the
export.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from core.dtos import ScrollPage
from core.errors import BackendError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_FILTER_FIELD = "host"


def host_filter_query(value: str, *, field: str = DEFAULT_FILTER_FIELD) -> Dict[str, Any]:
    """Equality predicate on *field*, written as a Lucene ``field:"value"`` query."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return {"query_string": {"query": f'{field}:"{escaped}"'}}


def _error_reason(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason or ""
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict):
        root = (err.get("root_cause") or [err])[0]
        return f"{root.get('type', 'error')}: {root.get('reason', '')}".strip()
    if err:
        return str(err)
    return resp.reason or ""


class ElasticsearchBackend:
    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        filter_field: str = DEFAULT_FILTER_FIELD,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self.timeout = timeout
        self.filter_field = filter_field

    # --------------------------------------------------------------------------- core helpers

    def _request_json(self, method: str, endpoint: str, *, params=None, body=None) -> Dict[str, Any]:
        """Send *body* as JSON to *endpoint* (relative to base_url) and return decoded JSON."""
        url = f"{self.base_url}{endpoint}"
        try:
            resp = self._session.request(method, url, params=params, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise BackendError(f"{method} {url} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise BackendError(
                f"{method} {url} returned HTTP {resp.status_code}: {_error_reason(resp)}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise BackendError(f"{method} {url} returned a non-JSON body") from exc

    @staticmethod
    def _page(data: Dict[str, Any]) -> ScrollPage:
        try:
            return ScrollPage.model_validate(data)
        except ValidationError as exc:
            raise BackendError(f"malformed search response: {exc.error_count()} problem(s)") from exc

    # --------------------------------------------------------------------------- scroll protocol

    def search_body(self, *, fields: Sequence[str], host_filter: str | None, size: int) -> Dict[str, Any]:
        query = (
            host_filter_query(host_filter, field=self.filter_field)
            if host_filter
            else {"match_all": {}}
        )
        return {
            "size": size,
            "_source": False,
            "fields": list(fields),
            "track_total_hits": True,
            "query": query,
        }

    def open_scroll(
        self,
        *,
        index: str,
        fields: Sequence[str],
        host_filter: str | None,
        scroll: str,
        size: int,
    ) -> ScrollPage:
        body = self.search_body(fields=fields, host_filter=host_filter, size=size)
        logger.debug("Opening scroll on %s (lease %s, size %d)", index, scroll, size)
        data = self._request_json("POST", f"/{index}/_search", params={"scroll": scroll}, body=body)
        return self._page(data)

    def next_page(self, *, scroll_id: str, scroll: str) -> ScrollPage:
        data = self._request_json(
            "POST", "/_search/scroll", body={"scroll": scroll, "scroll_id": scroll_id}
        )
        return self._page(data)

    def release(self, scroll_id: str) -> None:
        """Clear the scroll context. The lease expires on its own, so failure only warns."""
        try:
            self._request_json("DELETE", "/_search/scroll", body={"scroll_id": [scroll_id]})
        except BackendError as exc:
            logger.warning("Could not clear scroll context: %s", exc)
