"""Expand every marker row of the overview into one row per juror.

Marker rows are processed bottom-up. Rows are only ever inserted below the
marker being processed, so the rows of markers further up the sheet keep the
numbers recorded when the pristine template was scanned.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from aufguss_scoring.columns import index_to_letter, letter_to_index, row_range
from aufguss_scoring.errors import NotFoundError, RemoteWriteError
from aufguss_scoring.google_services import SpreadsheetServices
from aufguss_scoring.models import Juror, MarkerRow
from aufguss_scoring.replicator import fetch_sheet_name_map
from aufguss_scoring.scanner import DEFAULT_SCAN_WINDOW, ScanWindow
from aufguss_scoring.sheet_requests import (
    copy_rows_request,
    import_range_formula,
    insert_rows_request,
    update_cell_request,
)

logger = logging.getLogger(__name__)

NAME_COLUMN_INDEX = 0
POINTS_COLUMN_INDEX = 1
POINTS_FIRST_COLUMN = "B"
WEIGHT_COLUMN_OFFSET = 2
FEEDBACK_COLUMN_OFFSET = 3


def points_cells(marker: MarkerRow) -> str:
    if not marker.end_column:
        return f"{POINTS_FIRST_COLUMN}{marker.row}"
    return row_range(POINTS_FIRST_COLUMN, marker.end_column, marker.row)


def build_marker_row_requests(
    sheet_id: int,
    sheet_name: str,
    marker: MarkerRow,
    jury: Sequence[Juror],
    juror_document_ids: Sequence[str],
    *,
    column_count: int = DEFAULT_SCAN_WINDOW.column_count,
) -> List[Dict[str, Any]]:
    """Return the batch requests that expand one marker row.

    Juror ``j`` ends up on row ``marker.row + j``. With a single juror no
    rows are inserted and the marker row itself is filled in.
    """

    if len(juror_document_ids) != len(jury):
        raise ValueError(
            f"Expected {len(jury)} juror documents, got {len(juror_document_ids)}."
        )

    marker_row_index = marker.row - 1
    juror_count = len(jury)
    requests: List[Dict[str, Any]] = []

    if juror_count > 1:
        requests.append(
            insert_rows_request(sheet_id, marker.row, marker.row + juror_count - 1)
        )
        requests.append(
            copy_rows_request(
                sheet_id,
                marker_row_index,
                marker.row,
                marker.row + juror_count - 1,
                column_count,
            )
        )

    end_index = letter_to_index(marker.end_column)
    feedback_column_index = end_index + FEEDBACK_COLUMN_OFFSET
    feedback_cell = f"{index_to_letter(feedback_column_index + 1)}{marker.row}"

    for offset, (juror, document_id) in enumerate(zip(jury, juror_document_ids)):
        row_index = marker_row_index + offset
        requests.append(
            update_cell_request(sheet_id, row_index, NAME_COLUMN_INDEX, juror.name)
        )
        requests.append(
            update_cell_request(
                sheet_id,
                row_index,
                POINTS_COLUMN_INDEX,
                import_range_formula(document_id, sheet_name, points_cells(marker)),
            )
        )
        requests.append(
            update_cell_request(
                sheet_id,
                row_index,
                feedback_column_index,
                import_range_formula(document_id, sheet_name, feedback_cell),
            )
        )
        requests.append(
            update_cell_request(
                sheet_id,
                row_index,
                end_index + WEIGHT_COLUMN_OFFSET,
                juror.weight_fraction,
            )
        )
    return requests


def expand_juror_rows(
    services: SpreadsheetServices,
    spreadsheet_id: str,
    sheet_names: Sequence[str],
    marker_rows: Sequence[MarkerRow],
    jury: Sequence[Juror],
    juror_document_ids: Sequence[str],
    *,
    window: ScanWindow = DEFAULT_SCAN_WINDOW,
    sheet_ids: Optional[Mapping[str, int]] = None,
    check_cancelled: Optional[Callable[[], None]] = None,
    log_status: Optional[Callable[[str], None]] = None,
) -> int:
    """Insert and fill the juror rows on every contestant sheet.

    Returns the number of marker rows that were expanded. Any failed batch
    ends the run; rows committed before it are left in place.
    """

    marker_rows = tuple(marker_rows)
    if sheet_ids is None:
        sheet_ids = fetch_sheet_name_map(services, spreadsheet_id)

    expanded = 0
    total_sheets = len(sheet_names)
    for position, sheet_name in enumerate(sheet_names, start=1):
        if check_cancelled is not None:
            check_cancelled()
        if sheet_name not in sheet_ids:
            raise NotFoundError(f"Sheet with name {sheet_name} not found in spreadsheet.")
        sheet_id = sheet_ids[sheet_name]
        if log_status is not None:
            log_status(f"Processing sheet: {sheet_name} ({position}/{total_sheets})")

        for marker in reversed(marker_rows):
            if check_cancelled is not None:
                check_cancelled()

            current_values = services.read_range(
                spreadsheet_id,
                sheet_name,
                row_range("A", window.last_column, marker.row),
            )
            if not current_values:
                logger.debug("Skipping empty row %d on %s", marker.row, sheet_name)
                continue

            requests = build_marker_row_requests(
                sheet_id,
                sheet_name,
                marker,
                jury,
                juror_document_ids,
                column_count=window.column_count,
            )
            try:
                services.batch_update(spreadsheet_id, requests)
            except RemoteWriteError as exc:
                raise RemoteWriteError(
                    f"Failed to process sheet {sheet_name}, row {marker.row}: {exc}"
                ) from exc
            expanded += 1

    return expanded
