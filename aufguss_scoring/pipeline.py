"""Sequence the generation stages and report progress.

A run always starts from scratch: it creates a new folder and new documents
and never reuses remote state from an earlier, cancelled or failed run.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from aufguss_scoring import assembler, replicator
from aufguss_scoring.errors import CancelledError, GenerationError, NotFoundError
from aufguss_scoring.expansion import expand_juror_rows
from aufguss_scoring.google_services import SpreadsheetServices
from aufguss_scoring.models import Competition, GeneratedDocumentSet, validate_competition
from aufguss_scoring.scanner import DEFAULT_SCAN_WINDOW, ScanWindow, find_marker_rows
from aufguss_scoring.sheet_requests import delete_sheet_request

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_SHEET_TITLE = "Board"

ProgressSink = Callable[[str], None]


class Stage(Enum):
    CREATE_FOLDER = "Create folder"
    COPY_TEMPLATE = "Copy template"
    FIND_BOARD_SHEET = "Find board sheet"
    DUPLICATE_SHEETS = "Duplicate sheets"
    NAME_CONTESTANTS = "Name contestants"
    DELETE_TEMPLATE_SHEET = "Delete template sheet"
    COPY_JUROR_SHEETS = "Copy juror sheets"
    EXPAND_JUROR_ROWS = "Expand juror rows"
    DONE = "Done"

    @property
    def label(self) -> str:
        return self.value


class CancellationToken:
    """Cooperative cancellation flag shared between the UI and a worker."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancelledError("Generation was cancelled.")


def _discard(_message: str) -> None:
    return None


class GenerationPipeline:
    """Run the stages in order against one set of remote services."""

    def __init__(
        self,
        services: SpreadsheetServices,
        parent_folder_id: str,
        *,
        log_status: Optional[ProgressSink] = None,
        cancel_token: Optional[CancellationToken] = None,
        scan_window: ScanWindow = DEFAULT_SCAN_WINDOW,
        template_sheet_title: str = DEFAULT_TEMPLATE_SHEET_TITLE,
    ) -> None:
        self.services = services
        self.parent_folder_id = parent_folder_id
        self.log_status: ProgressSink = log_status or _discard
        self.cancel_token = cancel_token or CancellationToken()
        self.scan_window = scan_window
        self.template_sheet_title = template_sheet_title
        self.stage: Optional[Stage] = None

    def _enter(self, stage: Stage) -> None:
        self.stage = stage
        self.cancel_token.raise_if_cancelled()
        logger.debug("Entering stage %s", stage.name)

    def run(self, competition: Competition) -> GeneratedDocumentSet:
        """Generate every document for ``competition``.

        Errors are tagged with the failing stage, reported to the progress
        sink and re-raised. Objects created before the failure are kept.
        """

        snapshot = competition.snapshot()
        try:
            validate_competition(snapshot)
            result = self._run_stages(snapshot)
        except GenerationError as exc:
            if exc.stage is None:
                exc.stage = self.stage
            stage_label = exc.stage.label if exc.stage is not None else "validation"
            self.log_status(f"Error during {stage_label}: {exc}")
            raise
        self.stage = Stage.DONE
        self.log_status("Generation completed successfully.")
        return result

    def _run_stages(self, competition: Competition) -> GeneratedDocumentSet:
        services = self.services
        result = GeneratedDocumentSet()

        self._enter(Stage.CREATE_FOLDER)
        self.log_status(f"Creating new folder '{competition.name}'...")
        result.folder_id = assembler.create_folder(
            services, self.parent_folder_id, competition.name
        )
        self.log_status(
            f"Done. New folder '{competition.name}' has ID: {result.folder_id}"
        )

        self._enter(Stage.COPY_TEMPLATE)
        self.log_status(
            f"Copying Template Spreadsheet ID {competition.source_sheet_id} for Overview..."
        )
        result.overview_id = assembler.copy_template(services, result.folder_id, competition)
        self.log_status(
            f"Done. Spreadsheet ID {competition.source_sheet_id} was copied to ID "
            f"{result.overview_id}"
        )

        self._enter(Stage.FIND_BOARD_SHEET)
        title = self.template_sheet_title
        self.log_status(f"Looking for sheet named '{title}' in new spreadsheet...")
        name_map = replicator.fetch_sheet_name_map(services, result.overview_id)
        if title not in name_map:
            raise NotFoundError(f"Sheet named '{title}' not found in the spreadsheet.")
        template_sheet_id = name_map[title]
        result.marker_rows = find_marker_rows(
            services, result.overview_id, title, self.scan_window
        )
        self.log_status(
            f"Found {len(result.marker_rows)} 'Points:' row(s) in sheet '{title}'."
        )

        self._enter(Stage.DUPLICATE_SHEETS)
        contestant_count = len(competition.contestants)
        self.log_status(f"Duplicating sheet '{title}' {contestant_count} times...")
        result.sheet_names = replicator.duplicate_sheets(
            services, result.overview_id, template_sheet_id, contestant_count
        )
        self.log_status(f"Done. Sheet '{title}' duplicated {contestant_count} times.")

        self._enter(Stage.NAME_CONTESTANTS)
        self.log_status("Inserting contestant names into each duplicated sheet...")
        sheet_ids = replicator.name_contestants(
            services, result.overview_id, competition.contestants, result.sheet_names
        )
        self.log_status("Contestant names inserted successfully.")

        self._enter(Stage.DELETE_TEMPLATE_SHEET)
        self.log_status(f"Deleting '{title}' sheet...")
        services.batch_update(result.overview_id, [delete_sheet_request(template_sheet_id)])
        self.log_status(f"Sheet '{title}' deleted in the Overview sheet.")

        self._enter(Stage.COPY_JUROR_SHEETS)
        self.log_status("Creating the spreadsheet for each juror...")
        result.juror_document_ids = assembler.copy_juror_documents(
            services,
            result.overview_id,
            result.folder_id,
            competition.name,
            competition.jury,
            check_cancelled=self.cancel_token.raise_if_cancelled,
            log_status=self.log_status,
        )

        self._enter(Stage.EXPAND_JUROR_ROWS)
        self.log_status("Duplicating juror rows in the Overview spreadsheet...")
        expand_juror_rows(
            services,
            result.overview_id,
            result.sheet_names,
            result.marker_rows,
            competition.jury,
            result.juror_document_ids,
            window=self.scan_window,
            sheet_ids=sheet_ids,
            check_cancelled=self.cancel_token.raise_if_cancelled,
            log_status=self.log_status,
        )
        self.log_status("Finished duplicating juror rows in the Overview spreadsheet.")

        return result


def generate_scoring_sheets(
    services: SpreadsheetServices,
    parent_folder_id: str,
    competition: Competition,
    log_status: Optional[ProgressSink] = None,
    *,
    cancel_token: Optional[CancellationToken] = None,
    scan_window: ScanWindow = DEFAULT_SCAN_WINDOW,
    template_sheet_title: str = DEFAULT_TEMPLATE_SHEET_TITLE,
) -> GeneratedDocumentSet:
    """Convenience wrapper running a fresh ``GenerationPipeline``."""

    pipeline = GenerationPipeline(
        services,
        parent_folder_id,
        log_status=log_status,
        cancel_token=cancel_token,
        scan_window=scan_window,
        template_sheet_title=template_sheet_title,
    )
    return pipeline.run(competition)
