import pytest

from aufguss_scoring.errors import RemoteReadError
from aufguss_scoring.models import MarkerRow
from aufguss_scoring.scanner import ScanWindow, find_marker_rows, parse_marker_rows

from conftest import template_rows


def test_end_column_is_the_column_before_total():
    values = [
        ["Title"],
        ["Points:", "1", "2", "Total:"],
    ]
    assert parse_marker_rows(values) == (MarkerRow(row=2, end_column="C"),)


def test_rows_are_ascending_and_missing_total_is_empty():
    values = [
        ["Points:", "", "Total:"],
        [],
        ["Notes"],
        ["Points:", "a", "b"],
        ["points:", "Total:"],
        ["Points:", "", "", "", "", "Total:", "Total:"],
    ]
    assert parse_marker_rows(values) == (
        MarkerRow(1, "B"),
        MarkerRow(4, ""),
        MarkerRow(6, "E"),
    )


def test_only_exact_markers_match():
    values = [["Points: ", "Total:"], [" Points:", "Total:"], ["Points:", "Total: "]]
    assert parse_marker_rows(values) == (MarkerRow(3, ""),)


def test_markers_outside_the_window_are_ignored():
    window = ScanWindow(max_rows=3, last_column="C")
    values = [
        ["Points:", "", "", "Total:"],
        ["x"],
        ["Points:", "", "Total:"],
        ["Points:", "Total:"],
    ]
    assert parse_marker_rows(values, window) == (MarkerRow(1, ""), MarkerRow(3, "B"))


def test_window_validation():
    with pytest.raises(ValueError):
        ScanWindow(max_rows=0)
    with pytest.raises(ValueError):
        ScanWindow(last_column="A")
    assert ScanWindow().cells == "A1:Z200"
    assert ScanWindow(50, "AB").column_count == 28


class TestFindMarkerRows:
    def test_reads_the_default_window(self, fake_services):
        spreadsheet_id = fake_services.add_spreadsheet(
            "Template", {"Board": template_rows({3: "E", 7: "D"})}
        )

        markers = find_marker_rows(fake_services, spreadsheet_id, "Board")

        assert markers == (MarkerRow(3, "D"), MarkerRow(7, "C"))
        assert fake_services.calls[-1] == ("read_range", spreadsheet_id, ("Board", "A1:Z200"))

    def test_is_deterministic(self, fake_services):
        spreadsheet_id = fake_services.add_spreadsheet(
            "Template", {"Board": template_rows({2: "C", 4: "C", 6: "F"})}
        )
        first = find_marker_rows(fake_services, spreadsheet_id, "Board")
        second = find_marker_rows(fake_services, spreadsheet_id, "Board")
        assert first == second
        assert [marker.row for marker in first] == sorted(marker.row for marker in first)

    def test_no_markers_is_empty_not_an_error(self, fake_services):
        spreadsheet_id = fake_services.add_spreadsheet("Template", {"Board": [["Hello"]]})
        assert find_marker_rows(fake_services, spreadsheet_id, "Board") == ()

    def test_read_failure_propagates(self, fake_services):
        spreadsheet_id = fake_services.add_spreadsheet("Template", {"Board": []})
        fake_services.fail_on["read_range"] = RemoteReadError("boom")
        with pytest.raises(RemoteReadError):
            find_marker_rows(fake_services, spreadsheet_id, "Board")


def test_window_column_is_normalised():
    window = ScanWindow(10, " ab ")
    assert window.last_column == "AB"
    assert window.cells == "A1:AB10"
    assert window == ScanWindow(10, "AB")
