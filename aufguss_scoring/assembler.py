"""Create the destination folder and the spreadsheet copies."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from aufguss_scoring.google_services import SpreadsheetServices
from aufguss_scoring.models import Competition, Juror

ProgressSink = Callable[[str], None]


def overview_document_name(competition_name: str) -> str:
    return f"{competition_name} - Overview"


def juror_document_name(competition_name: str, position: int, juror: Juror) -> str:
    return f"{competition_name} - Scoring Juror #{position} ({juror.name})"


def create_folder(services: SpreadsheetServices, parent_id: str, name: str) -> str:
    return services.create_folder(parent_id, name)


def copy_document(
    services: SpreadsheetServices, source_id: str, folder_id: str, name: str
) -> str:
    return services.copy_file(source_id, folder_id, name)


def copy_template(
    services: SpreadsheetServices, folder_id: str, competition: Competition
) -> str:
    return copy_document(
        services,
        competition.source_sheet_id,
        folder_id,
        overview_document_name(competition.name),
    )


def copy_juror_documents(
    services: SpreadsheetServices,
    overview_id: str,
    folder_id: str,
    competition_name: str,
    jury: Sequence[Juror],
    *,
    check_cancelled: Optional[Callable[[], None]] = None,
    log_status: Optional[ProgressSink] = None,
) -> Tuple[str, ...]:
    """Copy the overview once per juror, in jury order."""

    document_ids: List[str] = []
    for position, juror in enumerate(jury, start=1):
        if check_cancelled is not None:
            check_cancelled()
        document_id = copy_document(
            services,
            overview_id,
            folder_id,
            juror_document_name(competition_name, position, juror),
        )
        document_ids.append(document_id)
        if log_status is not None:
            log_status(
                f"Copied Overview spreadsheet for Juror #{position} ({juror.name}) "
                f"(Sheet ID {document_id})"
            )
    return tuple(document_ids)
