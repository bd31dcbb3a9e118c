"""Utility helpers shared by the CLI and services.

Settings are loaded centrally in `app.settings`; this module re-exports the
accessor next to the small path and list helpers the command needs.
"""

from __future__ import annotations

import os
from pathlib import Path

from app.settings import get_settings
from core.errors import ConfigurationError

XLSX_EXTENSION = ".xlsx"

__all__ = ["XLSX_EXTENSION", "clean_output_path", "csv_to_list", "get_settings"]


def csv_to_list(s: str) -> list[str]:
    return [x.strip() for x in s.split(",") if x.strip()]


def clean_output_path(outputfile: str | os.PathLike, *, extension: str = XLSX_EXTENSION) -> Path:
    """Normalise *outputfile* and make sure it ends in *extension*.

    ``report`` -> ``report.xlsx``, ``report.xlsx`` stays as is and any other
    extension (``report.csv``) is rejected with ``ConfigurationError``.
    """
    raw = os.fspath(outputfile).strip()
    if not raw:
        raise ConfigurationError("output file name is empty", phase="validate")

    cleaned = Path(os.path.normpath(raw))
    if cleaned.name in ("", ".", ".."):
        raise ConfigurationError(f"output path {raw!r} is a directory, not a file", phase="validate")

    # pathlib gives "report." an empty suffix; a bare trailing dot still counts as an extension
    ext = "." if cleaned.name.endswith(".") else cleaned.suffix
    if ext and ext.lower() != extension:
        raise ConfigurationError(
            f"Extension, {ext}, not allowed. Must end in {extension.lstrip('.')}!",
            phase="validate",
        )
    if not ext:
        cleaned = cleaned.with_name(cleaned.name + extension)
    return cleaned
