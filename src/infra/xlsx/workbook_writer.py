"""Persist a sealed ``SheetGrid`` as a single-sheet .xlsx workbook (openpyxl)."""
from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path

from openpyxl import Workbook

from core.errors import GridStateError
from core.grid import SheetGrid

logger = logging.getLogger(__name__)


def grid_to_workbook(grid: SheetGrid) -> Workbook:
    if not grid.sealed:
        raise GridStateError("grid range must be declared before it can be written")

    wb = Workbook()
    ws = wb.active
    ws.title = grid.name[:31]  # sheet name limit

    for (col, row), cell in grid.cells():
        target = ws.cell(row=row + 1, column=col + 1, value=cell.value)
        # keep "=..." and numeric-looking text as plain strings
        target.data_type = cell.type_tag

    # Materialise the bottom-right corner so the sheet dimension spans the declared range
    _, (last_col, last_row) = grid.occupied_range
    ws.cell(row=last_row + 1, column=last_col + 1)
    return wb


def _target_mode(path: Path) -> int:
    """Mode the report should end up with: the existing file's, else 0o666 minus the umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


class XlsxGridWriter:
    """Writes the whole workbook to a temp file beside the target, then moves it into place."""

    def write(self, grid: SheetGrid, path: Path) -> Path:
        path = Path(path)
        wb = grid_to_workbook(grid)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=".xlsx.tmp", dir=path.parent)
        os.close(fd)
        try:
            wb.save(tmp_name)
            os.chmod(tmp_name, _target_mode(path))
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.remove(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug("Saved %s (%s)", path, grid.ref)
        return path
