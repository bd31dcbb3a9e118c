from pathlib import Path

import pytest

from core.errors import PersistenceError, UnsetCellError
from core.grid import SheetGrid
from core.services.export_service import ExportService


class RecordingWriter:
    def __init__(self):
        self.written = []

    def write(self, grid: SheetGrid, path: Path) -> Path:
        self.written.append((grid, path))
        return path


class ExplodingWriter:
    def write(self, grid, path):
        raise OSError(28, "No space left on device")


FIELDS = ["host", "url", "title"]


def _records(n):
    return [{"host": "example.com", "url": f"http://example.com/{i}", "title": f"T{i}"} for i in range(n)]


@pytest.mark.parametrize("n", [0, 1, 100])
def test_occupied_range_spans_header_and_records(n):
    grid = ExportService(RecordingWriter()).build(FIELDS, _records(n))
    assert grid.occupied_range == ((0, 0), (len(FIELDS), n + 1))


def test_header_row_matches_field_order_even_without_records():
    grid = ExportService(RecordingWriter()).build(["url", "host"], [])
    assert grid.row_values(0, 2) == ["url", "host"]
    assert len(grid) == 2
    assert grid.ref == "A1:C2"


def test_records_land_one_row_below_their_index():
    grid = ExportService(RecordingWriter()).build(FIELDS, _records(3))
    assert grid.row_values(0, 3) == FIELDS
    for j in range(3):
        assert grid.row_values(j + 1, 3) == ["example.com", f"http://example.com/{j}", f"T{j}"]


def test_missing_and_null_fields_become_empty_cells():
    records = [{"host": "a.com"}, {"host": None, "url": "http://b/", "title": None}, {}]
    grid = ExportService(RecordingWriter()).build(FIELDS, records)

    assert len(grid) == len(FIELDS) * (len(records) + 1)
    assert grid.row_values(1, 3) == ["a.com", "", ""]
    assert grid.row_values(2, 3) == ["", "http://b/", ""]
    assert grid.row_values(3, 3) == ["", "", ""]
    # padding column/row inside the declared range are never written
    with pytest.raises(UnsetCellError):
        grid.get_cell(3, 0)


def test_export_hands_sealed_grid_to_writer(tmp_path):
    writer = RecordingWriter()
    out = tmp_path / "report.xlsx"
    grid = ExportService(writer, sheet_name="crawl").export(FIELDS, _records(2), out)
    assert writer.written == [(grid, out)]
    assert grid.sealed
    assert grid.name == "crawl"


def test_writer_failure_is_wrapped_without_retry(tmp_path):
    with pytest.raises(PersistenceError) as excinfo:
        ExportService(ExplodingWriter()).export(FIELDS, _records(1), tmp_path / "x.xlsx", index_name="crawl")
    err = excinfo.value
    assert err.exit_code == 20
    assert err.phase == "write"
    assert err.index_name == "crawl"
    assert isinstance(err.__cause__, OSError)
    assert "No space left" in str(err)


def test_build_is_idempotent():
    svc = ExportService(RecordingWriter())
    a = svc.build(FIELDS, _records(5))
    b = svc.build(FIELDS, _records(5))
    assert list(a.cells()) == list(b.cells())
    assert a.ref == b.ref
