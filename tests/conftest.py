import os
import sys

import pytest

# Ensure 'src/' is on sys.path for imports like 'from core import grid'
_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_SRC_PATH = os.path.join(_REPO_ROOT, "src")
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

from core.dtos import ScrollPage, SearchHit  # noqa: E402


def make_docs(n, *, host="example.com"):
    return [
        {
            "host": [host],
            "url": [f"http://{host}/page-{i}"],
            "type": ["text/html"],
            "contentLength": [1000 + i],
            "title": [f"Page {i}"],
        }
        for i in range(n)
    ]


class FakeBackend:
    """In-memory scroll backend serving *docs* in pages of *page_size*.

    ``docs`` entries are field dicts, or ``None`` for a hit with no fields.
    ``total`` overrides the reported total; ``fail_on`` names the call
    (``"open"`` or ``"next"``) that raises.
    """

    def __init__(self, docs, *, page_size=None, total=None, fail_on=None, scroll_id_prefix="cursor"):
        self.docs = list(docs)
        self.page_size = page_size
        self.total = len(self.docs) if total is None else total
        self.fail_on = fail_on
        self.prefix = scroll_id_prefix
        self.calls = []
        self.released = []
        self._offset = 0
        self._size = None
        self._generation = 0

    def _serve(self):
        size = self.page_size or self._size
        chunk = self.docs[self._offset : self._offset + size]
        self._offset += len(chunk)
        self._generation += 1
        return ScrollPage(
            scroll_id=f"{self.prefix}-{self._generation}",
            total=self.total,
            hits=[SearchHit(fields=doc) for doc in chunk],
        )

    def open_scroll(self, *, index, fields, host_filter, scroll, size):
        self.calls.append(("open", index, tuple(fields), host_filter, scroll, size))
        if self.fail_on == "open":
            raise RuntimeError("connection refused")
        self._size = size
        return self._serve()

    def next_page(self, *, scroll_id, scroll):
        self.calls.append(("next", scroll_id, scroll))
        if self.fail_on == "next":
            from core.errors import BackendError

            raise BackendError("search_context_missing_exception: No search context found", status_code=404)
        assert scroll_id == f"{self.prefix}-{self._generation}", "stale cursor presented"
        return self._serve()

    def release(self, scroll_id):
        self.released.append(scroll_id)


@pytest.fixture
def fake_backend_factory():
    return FakeBackend


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None, reason="OK"):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ""
        self.reason = reason

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Records requests and replays queued ``FakeResponse`` objects (or raises queued exceptions)."""

    def __init__(self, responses=()):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, params=None, json=None, timeout=None):
        self.requests.append({"method": method, "url": url, "params": params, "json": json, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def fake_session_factory():
    return FakeSession


def es_response(docs, *, total=None, scroll_id="scroll-1", new_style_total=True):
    total = len(docs) if total is None else total
    return {
        "_scroll_id": scroll_id,
        "took": 1,
        "timed_out": False,
        "hits": {
            "total": {"value": total, "relation": "eq"} if new_style_total else total,
            "hits": [
                {"_index": "crawl", "_id": str(i), **({"fields": d} if d is not None else {})}
                for i, d in enumerate(docs)
            ],
        },
    }


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Keep APP_* variables and a developer's data/.env out of tests."""
    for key in list(os.environ):
        if key.startswith("APP_"):
            monkeypatch.delenv(key, raising=False)
    from app import settings as settings_mod

    monkeypatch.setitem(settings_mod.Settings.model_config, "env_file", str(tmp_path / "missing.env"))
    settings_mod.get_settings.cache_clear()
    yield
    settings_mod.get_settings.cache_clear()
