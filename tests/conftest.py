"""Shared fixtures: an in-memory stand-in for Google Drive and Sheets."""

from __future__ import annotations

import copy
import itertools
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pytest

from aufguss_scoring.columns import letter_to_index
from aufguss_scoring.errors import NotFoundError, RemoteReadError, RemoteWriteError
from aufguss_scoring.models import Competition, Contestant, Juror, SheetProperties

RANGE_PATTERN = re.compile(r"^([A-Z]+)(\d+):([A-Z]+)(\d+)$")


@dataclass
class FakeSheet:
    sheet_id: int
    title: str
    rows: List[List[Any]] = field(default_factory=list)

    def ensure_size(self, row_count: int, column_count: int) -> None:
        while len(self.rows) < row_count:
            self.rows.append([])
        for row in self.rows[:row_count]:
            while len(row) < column_count:
                row.append("")

    def value(self, row_index: int, column_index: int) -> Any:
        if row_index >= len(self.rows) or column_index >= len(self.rows[row_index]):
            return ""
        return self.rows[row_index][column_index]


@dataclass
class FakeFile:
    file_id: str
    name: str
    mime_type: str
    parents: List[str]
    sheets: List[FakeSheet] = field(default_factory=list)


class FakeServices:
    """Applies Drive and Sheets calls to simple in-memory grids.

    Every call is appended to ``calls`` as ``(method, spreadsheet_or_parent,
    payload)`` so tests can assert on what was issued.
    """

    def __init__(self) -> None:
        self.files: Dict[str, FakeFile] = {}
        self.calls: List[Tuple[str, str, Any]] = []
        self.fail_on: Dict[str, Exception] = {}
        self._file_ids = itertools.count(1)
        self._sheet_ids = itertools.count(1000)
        self.hooks: Dict[str, Any] = {}

    # helpers for tests

    def add_spreadsheet(
        self, name: str, sheets: Mapping[str, Sequence[Sequence[Any]]], parent: str = "root"
    ) -> str:
        file_id = f"file{next(self._file_ids)}"
        spreadsheet = FakeFile(file_id, name, "spreadsheet", [parent])
        for title, rows in sheets.items():
            spreadsheet.sheets.append(
                FakeSheet(next(self._sheet_ids), title, [list(row) for row in rows])
            )
        self.files[file_id] = spreadsheet
        return file_id

    def sheet(self, spreadsheet_id: str, title: str) -> FakeSheet:
        for sheet in self.files[spreadsheet_id].sheets:
            if sheet.title == title:
                return sheet
        raise KeyError(title)

    def requests_of(self, kind: str) -> List[Dict[str, Any]]:
        found = []
        for method, _target, payload in self.calls:
            if method != "batch_update":
                continue
            for request in payload:
                if kind in request:
                    found.append(request[kind])
        return found

    def _maybe_fail(self, method: str) -> None:
        hook = self.hooks.get(method)
        if hook is not None:
            hook()
        error = self.fail_on.get(method)
        if error is not None:
            raise error

    # SpreadsheetServices

    def create_folder(self, parent_id: str, name: str) -> str:
        self.calls.append(("create_folder", parent_id, name))
        self._maybe_fail("create_folder")
        file_id = f"folder{next(self._file_ids)}"
        self.files[file_id] = FakeFile(file_id, name, "folder", [parent_id])
        return file_id

    def copy_file(self, source_id: str, folder_id: str, name: str) -> str:
        self.calls.append(("copy_file", source_id, (folder_id, name)))
        self._maybe_fail("copy_file")
        if source_id not in self.files:
            raise RemoteWriteError(f"Unable to copy spreadsheet {source_id}: HTTP 404")
        source = self.files[source_id]
        file_id = f"file{next(self._file_ids)}"
        self.files[file_id] = FakeFile(
            file_id, name, source.mime_type, [folder_id], copy.deepcopy(source.sheets)
        )
        return file_id

    def list_files(self, query: str) -> List[Dict[str, str]]:
        self.calls.append(("list_files", "", query))
        self._maybe_fail("list_files")
        return [
            {"id": item.file_id, "name": item.name}
            for item in self.files.values()
            if item.mime_type == "spreadsheet" and f"'{item.parents[0]}' in parents" in query
        ]

    def get_spreadsheet_metadata(self, spreadsheet_id: str) -> List[SheetProperties]:
        self.calls.append(("get_spreadsheet_metadata", spreadsheet_id, None))
        self._maybe_fail("get_spreadsheet_metadata")
        if spreadsheet_id not in self.files:
            raise RemoteReadError(f"Unable to get spreadsheet details: {spreadsheet_id}")
        return [
            SheetProperties(sheet.sheet_id, sheet.title, index)
            for index, sheet in enumerate(self.files[spreadsheet_id].sheets)
        ]

    def read_range(self, spreadsheet_id: str, sheet_name: str, cells: str) -> List[List[Any]]:
        self.calls.append(("read_range", spreadsheet_id, (sheet_name, cells)))
        self._maybe_fail("read_range")
        match = RANGE_PATTERN.match(cells)
        assert match, cells
        first_column, first_row, last_column, last_row = match.groups()
        try:
            sheet = self.sheet(spreadsheet_id, sheet_name)
        except KeyError:
            raise RemoteReadError(f"Unable to parse range: {sheet_name}!{cells}") from None
        values: List[List[Any]] = []
        for row_index in range(int(first_row) - 1, int(last_row)):
            row = [
                sheet.value(row_index, column_index)
                for column_index in range(
                    letter_to_index(first_column) - 1, letter_to_index(last_column)
                )
            ]
            while row and row[-1] == "":
                row.pop()
            values.append(row)
        while values and not values[-1]:
            values.pop()
        return values

    def batch_update(
        self, spreadsheet_id: str, requests: Sequence[Mapping[str, Any]]
    ) -> List[Dict[str, Any]]:
        self.calls.append(("batch_update", spreadsheet_id, [dict(r) for r in requests]))
        self._maybe_fail("batch_update")
        spreadsheet = self.files[spreadsheet_id]
        replies: List[Dict[str, Any]] = []
        for request in requests:
            (kind, body), = request.items()
            replies.append(getattr(self, f"_apply_{kind}")(spreadsheet, body))
        return replies

    def _sheet_by_id(self, spreadsheet: FakeFile, sheet_id: int) -> FakeSheet:
        for sheet in spreadsheet.sheets:
            if sheet.sheet_id == sheet_id:
                return sheet
        raise NotFoundError(f"No sheet with id {sheet_id}")

    def _apply_duplicateSheet(self, spreadsheet: FakeFile, body: Mapping[str, Any]) -> Dict[str, Any]:
        source = self._sheet_by_id(spreadsheet, body["sourceSheetId"])
        title = body["newSheetName"]
        if any(sheet.title == title for sheet in spreadsheet.sheets):
            raise RemoteWriteError(f"A sheet with the name \"{title}\" already exists.")
        duplicate = FakeSheet(next(self._sheet_ids), title, copy.deepcopy(source.rows))
        spreadsheet.sheets.insert(spreadsheet.sheets.index(source) + 1, duplicate)
        return {"duplicateSheet": {"properties": {"sheetId": duplicate.sheet_id, "title": title}}}

    def _apply_deleteSheet(self, spreadsheet: FakeFile, body: Mapping[str, Any]) -> Dict[str, Any]:
        spreadsheet.sheets.remove(self._sheet_by_id(spreadsheet, body["sheetId"]))
        return {}

    def _apply_insertRange(self, spreadsheet: FakeFile, body: Mapping[str, Any]) -> Dict[str, Any]:
        grid = body["range"]
        assert body["shiftDimension"] == "ROWS"
        sheet = self._sheet_by_id(spreadsheet, grid["sheetId"])
        start, end = grid["startRowIndex"], grid["endRowIndex"]
        sheet.ensure_size(start, 0)
        for _ in range(end - start):
            sheet.rows.insert(start, [])
        return {}

    def _apply_copyPaste(self, spreadsheet: FakeFile, body: Mapping[str, Any]) -> Dict[str, Any]:
        source_range, destination = body["source"], body["destination"]
        sheet = self._sheet_by_id(spreadsheet, source_range["sheetId"])
        source_rows = [
            [
                sheet.value(row_index, column_index)
                for column_index in range(
                    source_range["startColumnIndex"], source_range["endColumnIndex"]
                )
            ]
            for row_index in range(source_range["startRowIndex"], source_range["endRowIndex"])
        ]
        sheet.ensure_size(destination["endRowIndex"], destination["endColumnIndex"])
        for offset, row_index in enumerate(
            range(destination["startRowIndex"], destination["endRowIndex"])
        ):
            pattern = source_rows[offset % len(source_rows)]
            for column_offset, value in enumerate(pattern):
                sheet.rows[row_index][destination["startColumnIndex"] + column_offset] = value
        return {}

    def _apply_updateCells(self, spreadsheet: FakeFile, body: Mapping[str, Any]) -> Dict[str, Any]:
        start = body["start"]
        sheet = self._sheet_by_id(spreadsheet, start["sheetId"])
        value = body["rows"][0]["values"][0]["userEnteredValue"]
        (_kind, literal), = value.items()
        sheet.ensure_size(start["rowIndex"] + 1, start["columnIndex"] + 1)
        sheet.rows[start["rowIndex"]][start["columnIndex"]] = literal
        return {}


def template_rows(marker_rows: Mapping[int, str], height: int = 8) -> List[List[Any]]:
    """Build a template grid with ``Points:`` rows ending before ``Total:``.

    ``marker_rows`` maps 1-based row numbers to the letter of the column that
    holds ``Total:``.
    """

    rows: List[List[Any]] = [["Scoring sheet"], ["Contestant:", ""]]
    while len(rows) < height:
        rows.append([f"Row {len(rows) + 1}"])
    for row_number, total_letter in marker_rows.items():
        total_index = letter_to_index(total_letter) - 1
        row: List[Any] = ["Points:"] + [""] * total_index
        row[total_index] = "Total:"
        rows[row_number - 1] = row
    return rows


@pytest.fixture
def fake_services() -> FakeServices:
    return FakeServices()


@pytest.fixture
def demo_competition(demo_template: str) -> Competition:
    return Competition(
        name="Demo",
        source_sheet_id=demo_template,
        jury=(Juror("X", 100), Juror("Y", 50)),
        contestants=(Contestant("A"), Contestant("B")),
    )


@pytest.fixture
def demo_template(fake_services: FakeServices) -> str:
    return fake_services.add_spreadsheet(
        "Template",
        {"Intro": [["Welcome"]], "Board": template_rows({5: "D"})},
        parent="templates",
    )


@pytest.fixture
def messages() -> List[str]:
    return []


def find_row(rows: List[List[Any]], first_value: str) -> Optional[int]:
    for index, row in enumerate(rows):
        if row and row[0] == first_value:
            return index + 1
    return None
