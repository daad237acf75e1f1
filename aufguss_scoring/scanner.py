"""Locate ``Points:`` marker rows in the template sheet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from aufguss_scoring.columns import index_to_letter, letter_to_index
from aufguss_scoring.google_services import SpreadsheetServices
from aufguss_scoring.models import MarkerRow

POINTS_MARKER = "Points:"
TOTAL_MARKER = "Total:"


@dataclass(frozen=True)
class ScanWindow:
    """Bounded region searched for markers. Cells outside it are never found."""

    max_rows: int = 200
    last_column: str = "Z"

    def __post_init__(self) -> None:
        object.__setattr__(self, "last_column", self.last_column.strip().upper())
        if self.max_rows <= 0:
            raise ValueError("The scan window needs at least one row.")
        if letter_to_index(self.last_column) < 2:
            raise ValueError(
                f"The scan window must reach at least column B, got {self.last_column!r}."
            )

    @property
    def column_count(self) -> int:
        return letter_to_index(self.last_column)

    @property
    def cells(self) -> str:
        return f"A1:{self.last_column}{self.max_rows}"


DEFAULT_SCAN_WINDOW = ScanWindow()


def _cell_equals(value: Any, marker: str) -> bool:
    return isinstance(value, str) and value == marker


def parse_marker_rows(
    values: Sequence[Sequence[Any]], window: ScanWindow = DEFAULT_SCAN_WINDOW
) -> Tuple[MarkerRow, ...]:
    """Extract marker rows from the values of a window read starting at A1.

    The end column is the column just before the ``Total:`` marker, which is
    the last column holding points.
    """

    markers: List[MarkerRow] = []
    column_limit = window.column_count
    for row_offset, row in enumerate(values[: window.max_rows]):
        if not row or not _cell_equals(row[0], POINTS_MARKER):
            continue
        end_column = ""
        for column_offset in range(1, min(len(row), column_limit)):
            if _cell_equals(row[column_offset], TOTAL_MARKER):
                end_column = index_to_letter(column_offset)
                break
        markers.append(MarkerRow(row=row_offset + 1, end_column=end_column))
    return tuple(markers)


def find_marker_rows(
    services: SpreadsheetServices,
    spreadsheet_id: str,
    sheet_name: str,
    window: ScanWindow = DEFAULT_SCAN_WINDOW,
) -> Tuple[MarkerRow, ...]:
    """Read the scan window of ``sheet_name`` and return its marker rows.

    Read failures propagate as ``RemoteReadError``. A sheet without markers
    yields an empty tuple.
    """

    values = services.read_range(spreadsheet_id, sheet_name, window.cells)
    return parse_marker_rows(values, window)
