# src/app/settings.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Compute project root: repo/ (two levels up from this file: repo/src/app/settings.py)
PROJECT_ROOT = Path(__file__).resolve().parents[2]
DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_REPORT_FIELDS = ["host", "url", "type", "contentLength", "title"]


class Settings(BaseSettings):
    """
    Central application configuration.

    Sources (highest precedence first):
      1. Constructor arguments (the CLI passes --server/--port/--verbose here)
      2. Environment variables (prefixed with APP_, e.g. APP_SERVER)
      3. .env file at data/.env
      4. Defaults below
    """

    model_config = SettingsConfigDict(
        env_file=str(DATA_DIR / ".env"),
        env_prefix="APP_",
        extra="ignore",
    )

    # Search backend
    server: str = Field(default="localhost", description="Elasticsearch host name")
    port: int = Field(default=9200, ge=1, le=65535, description="Elasticsearch port")
    scheme: str = Field(default="http", description="http or https")
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout (seconds)")

    # Scrolling
    scroll: str = Field(default="1s", description="Scroll lease kept alive between pages")
    page_size: int = Field(default=500, ge=1, description="Hits requested per page")
    max_pages: int | None = Field(
        default=10_000, ge=1, description="Upper bound on pages per export (None = unbounded)"
    )
    filter_field: str = Field(default="host", description="Field the host filter applies to")

    # Report
    report_fields: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_REPORT_FIELDS))
    sheet_name: str = Field(default="indexitems", max_length=31, description="Worksheet title")

    verbose: bool = Field(default=False, description="Echo parameters and log at DEBUG")

    # --- Validators / normalizers ---
    @field_validator("scheme", mode="before")
    @classmethod
    def _normalize_scheme(cls, v):
        if isinstance(v, str):
            v = v.strip().lower().rstrip(":/")
            if v not in ("http", "https"):
                raise ValueError(f"unsupported scheme {v!r}")
        return v

    @field_validator("report_fields", mode="before")
    @classmethod
    def _split_report_fields(cls, v):
        if isinstance(v, str):
            return [x.strip() for x in v.split(",") if x.strip()]
        return v

    @field_validator("max_pages", mode="before")
    @classmethod
    def _zero_means_unbounded(cls, v):
        if v in (0, "0", "", "none", "None"):
            return None
        return v

    # --- Helpers ---
    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.server}:{self.port}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Singleton-style accessor so imports are cheap and consistent system-wide.
    """
    return Settings()


if __name__ == "__main__":
    # Handy for a quick sanity check:
    s = get_settings()
    print("PROJECT_ROOT:", PROJECT_ROOT)
    print("base_url:", s.base_url)
    print("scroll:", s.scroll, "page_size:", s.page_size, "max_pages:", s.max_pages)
    print("report_fields:", ",".join(s.report_fields))
    print("sheet_name:", s.sheet_name)
