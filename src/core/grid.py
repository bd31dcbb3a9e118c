"""Coordinate-addressed sheet grid.

A ``SheetGrid`` is filled cell by cell with zero-based ``(col, row)``
coordinates, then sealed by declaring its occupied range. Persistence adapters
only ever see a sealed grid and translate it to their native workbook
structure; nothing here knows how a workbook is stored.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from openpyxl.utils.cell import get_column_letter

from core.errors import GridStateError, UnsetCellError

DEFAULT_SHEET_NAME = "indexitems"

Coord = tuple[int, int]


def cell_address(col: int, row: int) -> str:
    """Map zero-based ``(col, row)`` to A1 notation: ``(0, 0) -> "A1"``, ``(26, 4) -> "AA5"``."""
    _check_coord(col, row)
    return f"{get_column_letter(col + 1)}{row + 1}"


def range_address(top_left: Coord, bottom_right: Coord) -> str:
    return f"{cell_address(*top_left)}:{cell_address(*bottom_right)}"


def _check_coord(col: int, row: int) -> None:
    for name, v in (("col", col), ("row", row)):
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValueError(f"{name} must be an int, got {v!r}")
        if v < 0:
            raise ValueError(f"{name} must be >= 0, got {v}")


@dataclass(frozen=True, slots=True)
class Cell:
    value: str
    type_tag: str = "s"


class SheetGrid:
    def __init__(self, name: str = DEFAULT_SHEET_NAME) -> None:
        self.name = name
        self._cells: dict[Coord, Cell] = {}
        self._range: tuple[Coord, Coord] | None = None

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return f"SheetGrid(name={self.name!r}, cells={len(self._cells)}, ref={self.ref!r})"

    # --- writes ---
    def set_cell(self, col: int, row: int, value) -> None:
        _check_coord(col, row)
        if self.sealed:
            raise GridStateError("grid range already declared; no further cell writes allowed")
        self._cells[(col, row)] = Cell(value="" if value is None else str(value))

    def set_range(self, top_left: Coord, bottom_right: Coord) -> None:
        """Declare the occupied range. Allowed once, after the last ``set_cell``."""
        if self.sealed:
            raise GridStateError(f"grid range already declared as {self.ref}")
        _check_coord(*top_left)
        _check_coord(*bottom_right)
        if bottom_right[0] < top_left[0] or bottom_right[1] < top_left[1]:
            raise ValueError(f"range {top_left} -> {bottom_right} is inverted")
        self._range = (tuple(top_left), tuple(bottom_right))

    # --- reads ---
    def get_cell(self, col: int, row: int) -> Cell:
        _check_coord(col, row)
        try:
            return self._cells[(col, row)]
        except KeyError:
            raise UnsetCellError(col, row) from None

    def value(self, col: int, row: int) -> str:
        return self.get_cell(col, row).value

    def row_values(self, row: int, width: int) -> list[str]:
        return [self.value(col, row) for col in range(width)]

    def cells(self) -> Iterator[tuple[Coord, Cell]]:
        """Yield ``((col, row), cell)`` in row-major order."""
        for col, row in sorted(self._cells, key=lambda c: (c[1], c[0])):
            yield (col, row), self._cells[(col, row)]

    @property
    def sealed(self) -> bool:
        return self._range is not None

    @property
    def occupied_range(self) -> tuple[Coord, Coord] | None:
        return self._range

    @property
    def ref(self) -> str | None:
        if self._range is None:
            return None
        return range_address(*self._range)

    @property
    def max_col(self) -> int:
        return max((c for c, _ in self._cells), default=-1)

    @property
    def max_row(self) -> int:
        return max((r for _, r in self._cells), default=-1)


def new_grid(name: str = DEFAULT_SHEET_NAME) -> SheetGrid:
    return SheetGrid(name)
