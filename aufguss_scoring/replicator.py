"""Duplicate the template sheet once per contestant and label the copies."""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from aufguss_scoring.errors import NotFoundError
from aufguss_scoring.google_services import SpreadsheetServices
from aufguss_scoring.models import Contestant
from aufguss_scoring.sheet_requests import duplicate_sheet_request, update_cell_request

SHEET_NAME_PREFIX = "AM"
CONTESTANT_NAME_ROW_INDEX = 1
CONTESTANT_NAME_COLUMN_INDEX = 1


def contestant_sheet_names(count: int) -> Tuple[str, ...]:
    """Return ``AM<count>`` down to ``AM1``.

    Index ``i`` of the result belongs to contestant ``i``, so the first
    contestant gets the highest number.
    """

    return tuple(f"{SHEET_NAME_PREFIX}{count - index}" for index in range(count))


def duplicate_sheets(
    services: SpreadsheetServices,
    spreadsheet_id: str,
    source_sheet_id: int,
    count: int,
) -> Tuple[str, ...]:
    """Duplicate ``source_sheet_id`` ``count`` times in a single batch call."""

    sheet_names = contestant_sheet_names(count)
    services.batch_update(
        spreadsheet_id,
        [duplicate_sheet_request(source_sheet_id, name) for name in sheet_names],
    )
    return sheet_names


def fetch_sheet_name_map(services: SpreadsheetServices, spreadsheet_id: str) -> Dict[str, int]:
    return {
        sheet.title: sheet.sheet_id
        for sheet in services.get_spreadsheet_metadata(spreadsheet_id)
    }


def resolve_sheet_ids(
    services: SpreadsheetServices, spreadsheet_id: str, sheet_names: Sequence[str]
) -> Dict[str, int]:
    """Map each name to the id the spreadsheet currently assigns it.

    Duplicated sheets get fresh ids, so this always re-queries metadata.
    """

    name_map = fetch_sheet_name_map(services, spreadsheet_id)
    resolved: Dict[str, int] = {}
    for name in sheet_names:
        if name not in name_map:
            raise NotFoundError(f"Could not find sheet ID for {name}.")
        resolved[name] = name_map[name]
    return resolved


def name_contestants(
    services: SpreadsheetServices,
    spreadsheet_id: str,
    contestants: Sequence[Contestant],
    sheet_names: Sequence[str],
) -> Dict[str, int]:
    """Write every contestant's name into B2 of their sheet.

    Returns the resolved name to id map for the contestant sheets.
    """

    if len(sheet_names) != len(contestants):
        raise ValueError(
            f"Expected {len(contestants)} sheet names, got {len(sheet_names)}."
        )
    sheet_ids = resolve_sheet_ids(services, spreadsheet_id, sheet_names)
    requests: List[Dict[str, object]] = []
    for contestant, sheet_name in zip(contestants, sheet_names):
        requests.append(
            update_cell_request(
                sheet_ids[sheet_name],
                CONTESTANT_NAME_ROW_INDEX,
                CONTESTANT_NAME_COLUMN_INDEX,
                contestant.name,
            )
        )
    services.batch_update(spreadsheet_id, requests)
    return sheet_ids
