from __future__ import annotations

import requests

from app.settings import Settings, get_settings
from core.services.bulk_fetcher import BulkFetcher
from core.services.export_service import ExportService
from infra.search.elasticsearch_backend import ElasticsearchBackend
from infra.xlsx.workbook_writer import XlsxGridWriter

# -----------------------------
# Factories used by the command layer
# -----------------------------


def get_search_backend(
    settings: Settings | None = None,
    *,
    session: requests.Session | None = None,
) -> ElasticsearchBackend:
    settings = settings or get_settings()
    return ElasticsearchBackend(
        settings.base_url,
        session=session,
        timeout=settings.request_timeout,
        filter_field=settings.filter_field,
    )


def get_bulk_fetcher(settings: Settings | None = None, *, backend=None) -> BulkFetcher:
    """A fresh fetcher per export; fetchers are single-use."""
    settings = settings or get_settings()
    return BulkFetcher(
        backend or get_search_backend(settings),
        scroll=settings.scroll,
        page_size=settings.page_size,
        max_pages=settings.max_pages,
    )


def get_export_service(settings: Settings | None = None) -> ExportService:
    settings = settings or get_settings()
    return ExportService(writer=XlsxGridWriter(), sheet_name=settings.sheet_name)
