from .bulk_fetcher import BulkFetcher, SearchBackend
from .export_service import ExportService, GridWriter

__all__ = ["BulkFetcher", "ExportService", "GridWriter", "SearchBackend"]
