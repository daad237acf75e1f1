"""Builders for Sheets API ``batchUpdate`` request bodies."""

from __future__ import annotations

from typing import Any, Dict, Union

from aufguss_scoring.google_services import spreadsheet_url

CellValue = Union[str, int, float]


def extended_value(value: CellValue) -> Dict[str, Any]:
    """Return the ``ExtendedValue`` for a literal or formula cell value.

    Strings starting with ``=`` are sent as formulas.
    """

    if isinstance(value, str):
        if value.startswith("="):
            return {"formulaValue": value}
        return {"stringValue": value}
    if isinstance(value, bool):
        return {"boolValue": value}
    return {"numberValue": float(value)}


def update_cell_request(
    sheet_id: int, row_index: int, column_index: int, value: CellValue
) -> Dict[str, Any]:
    """Write one value at a 0-based grid coordinate."""

    return {
        "updateCells": {
            "start": {
                "sheetId": sheet_id,
                "rowIndex": row_index,
                "columnIndex": column_index,
            },
            "rows": [{"values": [{"userEnteredValue": extended_value(value)}]}],
            "fields": "userEnteredValue",
        }
    }


def duplicate_sheet_request(source_sheet_id: int, new_sheet_name: str) -> Dict[str, Any]:
    return {
        "duplicateSheet": {
            "sourceSheetId": source_sheet_id,
            "newSheetName": new_sheet_name,
        }
    }


def delete_sheet_request(sheet_id: int) -> Dict[str, Any]:
    return {"deleteSheet": {"sheetId": sheet_id}}


def insert_rows_request(sheet_id: int, start_row_index: int, end_row_index: int) -> Dict[str, Any]:
    """Insert blank rows ``[start_row_index, end_row_index)``, shifting content down."""

    return {
        "insertRange": {
            "range": {
                "sheetId": sheet_id,
                "startRowIndex": start_row_index,
                "endRowIndex": end_row_index,
            },
            "shiftDimension": "ROWS",
        }
    }


def copy_rows_request(
    sheet_id: int,
    source_row_index: int,
    destination_start_row_index: int,
    destination_end_row_index: int,
    column_count: int,
) -> Dict[str, Any]:
    """Paste one row (values and formatting) over a block of rows."""

    return {
        "copyPaste": {
            "source": {
                "sheetId": sheet_id,
                "startRowIndex": source_row_index,
                "endRowIndex": source_row_index + 1,
                "startColumnIndex": 0,
                "endColumnIndex": column_count,
            },
            "destination": {
                "sheetId": sheet_id,
                "startRowIndex": destination_start_row_index,
                "endRowIndex": destination_end_row_index,
                "startColumnIndex": 0,
                "endColumnIndex": column_count,
            },
            "pasteType": "PASTE_NORMAL",
        }
    }


def import_range_formula(spreadsheet_id: str, sheet_name: str, cells: str) -> str:
    """Return an ``IMPORTRANGE`` formula pulling ``cells`` from another document."""

    return f'=IMPORTRANGE("{spreadsheet_url(spreadsheet_id)}"; "{sheet_name}!{cells}")'
