"""Drain a scrolling search backend into an in-memory result set.

The fetcher opens a scroll, appends one ``Record`` per hit and keeps asking
for the next page until the number of collected records equals the total the
backend reported. A page-count budget bounds the loop in case the backend
never converges.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from core.dtos import FetchResult, QuerySpec, Record, ScrollPage, SearchHit
from core.enums import FetchState
from core.errors import (
    FetchError,
    FetchStateError,
    IncompleteScrollError,
    PageBudgetExceededError,
)

logger = logging.getLogger(__name__)

DEFAULT_SCROLL = "1s"
DEFAULT_PAGE_SIZE = 500
DEFAULT_MAX_PAGES = 10_000


class SearchBackend(Protocol):
    def open_scroll(
        self,
        *,
        index: str,
        fields: Sequence[str],
        host_filter: str | None,
        scroll: str,
        size: int,
    ) -> ScrollPage: ...

    def next_page(self, *, scroll_id: str, scroll: str) -> ScrollPage: ...

    def release(self, scroll_id: str) -> None: ...


def display_value(value: Any) -> str | None:
    """Render a backend field value as the display string stored in a record.

    Elasticsearch returns projected fields as arrays; a single element is
    unwrapped and longer arrays are joined.
    """
    if value is None:
        return None
    if isinstance(value, list | tuple):
        parts = [display_value(v) for v in value]
        parts = [p for p in parts if p is not None]
        if not parts:
            return None
        return ", ".join(parts)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def project_hit(hit: SearchHit, fields: Sequence[str]) -> Record:
    """Build a record holding exactly ``fields``; absent ones are ``None``."""
    source = hit.fields or {}
    return {name: display_value(source.get(name)) for name in fields}


@dataclass
class ScrollProgress:
    query: QuerySpec
    records: list[Record] = field(default_factory=list)
    total: int | None = None
    pages: int = 0
    scroll_id: str | None = None

    @property
    def complete(self) -> bool:
        return self.total is not None and len(self.records) == self.total


class BulkFetcher:
    """Single-use driver for one scroll: INIT -> FETCHING -> DONE | FAILED."""

    def __init__(
        self,
        backend: SearchBackend,
        *,
        scroll: str = DEFAULT_SCROLL,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int | None = DEFAULT_MAX_PAGES,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if max_pages is not None and max_pages < 1:
            raise ValueError("max_pages must be >= 1 (or None for no budget)")
        self._backend = backend
        self.scroll = scroll
        self.page_size = page_size
        self.max_pages = max_pages
        self.state = FetchState.INIT

    def fetch(self, query: QuerySpec) -> FetchResult:
        if self.state is not FetchState.INIT:
            raise FetchStateError(
                f"fetcher already {self.state.label.lower()}; create a new one per export",
                index_name=query.index_name,
                phase="fetch",
            )

        progress = ScrollProgress(query=query)
        self.state = FetchState.FETCHING
        try:
            page = self._backend.open_scroll(
                index=query.index_name,
                fields=query.report_fields,
                host_filter=query.host_filter,
                scroll=self.scroll,
                size=self.page_size,
            )
            progress = self._consume(progress, page)
            while not progress.complete:
                self._check_budget(progress)
                page = self._backend.next_page(scroll_id=progress.scroll_id, scroll=self.scroll)
                progress = self._consume(progress, page)
        except FetchError as exc:
            self.state = FetchState.FAILED
            exc.index_name = exc.index_name or query.index_name
            exc.phase = exc.phase or "fetch"
            raise
        except Exception as exc:
            self.state = FetchState.FAILED
            raise FetchError(
                f"search backend failed: {exc}", index_name=query.index_name, phase="fetch"
            ) from exc

        self.state = FetchState.DONE
        logger.info(
            "Fetched %d records from %s in %d page(s)",
            len(progress.records),
            query.index_name,
            progress.pages,
        )
        self._release(progress)
        return FetchResult(records=progress.records, total=progress.total or 0, pages=progress.pages)

    def _consume(self, progress: ScrollProgress, page: ScrollPage) -> ScrollProgress:
        fields = progress.query.report_fields
        if progress.total is not None and page.total != progress.total:
            logger.warning(
                "Reported total changed mid-scroll: %d -> %d", progress.total, page.total
            )
        progress.total = page.total
        progress.pages += 1
        if page.scroll_id:
            progress.scroll_id = page.scroll_id

        for hit in page.hits:
            progress.records.append(project_hit(hit, fields))

        collected = len(progress.records)
        logger.debug("Page %d: %d hits, %d/%d collected", progress.pages, len(page.hits), collected, page.total)

        if collected > page.total:
            raise IncompleteScrollError(
                f"backend returned {collected} hits but reported a total of {page.total}"
            )
        if collected < page.total and (not page.hits or not progress.scroll_id):
            # an empty page (or a missing cursor) means the backend has nothing more to give
            raise IncompleteScrollError(
                f"scroll exhausted after {collected} of {page.total} hits"
            )
        return progress

    def _check_budget(self, progress: ScrollProgress) -> None:
        if self.max_pages is not None and progress.pages >= self.max_pages:
            raise PageBudgetExceededError(
                f"gave up after {progress.pages} pages with {len(progress.records)} of "
                f"{progress.total} hits collected"
            )

    def _release(self, progress: ScrollProgress) -> None:
        if not progress.scroll_id:
            return
        try:
            self._backend.release(progress.scroll_id)
        except Exception as exc:
            # the lease expires on its own; a finished export stays finished
            logger.warning("Could not release scroll %s: %s", progress.scroll_id, exc)
