from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

from core.errors import PersistenceError
from core.grid import DEFAULT_SHEET_NAME, SheetGrid

logger = logging.getLogger(__name__)


class GridWriter(Protocol):
    def write(self, grid: SheetGrid, path: Path) -> Path: ...


class ExportService:
    """
    Lays records out on a sheet grid and hands the sealed grid to a writer.

    Row 0 is the header (the field names); record j lands on row j + 1 with
    field i in column i. The declared range is (0, 0) -> (field count,
    record count + 1).
    """

    def __init__(self, writer: GridWriter, *, sheet_name: str = DEFAULT_SHEET_NAME) -> None:
        self._writer = writer
        self.sheet_name = sheet_name

    def build(
        self,
        fields: Sequence[str],
        records: Sequence[Mapping[str, Any]],
    ) -> SheetGrid:
        grid = SheetGrid(self.sheet_name)

        for col, name in enumerate(fields):
            grid.set_cell(col, 0, name)

        for idx, record in enumerate(records):
            for col, name in enumerate(fields):
                value = record.get(name)
                grid.set_cell(col, idx + 1, "" if value is None else value)

        grid.set_range((0, 0), (len(fields), len(records) + 1))
        return grid

    def export(
        self,
        fields: Sequence[str],
        records: Sequence[Mapping[str, Any]],
        output_path: Path,
        *,
        index_name: str | None = None,
    ) -> SheetGrid:
        grid = self.build(fields, records)
        logger.debug("Writing %d cells (%s) to %s", len(grid), grid.ref, output_path)
        try:
            self._writer.write(grid, Path(output_path))
        except Exception as exc:
            raise PersistenceError(
                f"could not write {output_path}: {exc}", index_name=index_name, phase="write"
            ) from exc
        return grid
