from .elasticsearch_backend import ElasticsearchBackend

__all__ = ["ElasticsearchBackend"]
