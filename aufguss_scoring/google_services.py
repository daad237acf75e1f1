"""Thin wrappers around the Google Drive and Sheets APIs.

Everything the generator needs from Google goes through the
``SpreadsheetServices`` protocol so that the pipeline can be exercised
against an in-memory double. ``GoogleServices`` is the real implementation.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from aufguss_scoring.columns import a1_range
from aufguss_scoring.errors import RemoteReadError, RemoteWriteError
from aufguss_scoring.models import SheetProperties

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
SPREADSHEET_URL_PREFIX = "https://docs.google.com/spreadsheets/d/"
# socket timeouts and connection resets surface as OSError from execute()
GOOGLE_API_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


class SpreadsheetServices(Protocol):
    """Remote document storage and spreadsheet mutation used by the pipeline."""

    def create_folder(self, parent_id: str, name: str) -> str:
        ...

    def copy_file(self, source_id: str, folder_id: str, name: str) -> str:
        ...

    def list_files(self, query: str) -> List[Dict[str, str]]:
        ...

    def get_spreadsheet_metadata(self, spreadsheet_id: str) -> List[SheetProperties]:
        ...

    def read_range(
        self, spreadsheet_id: str, sheet_name: str, cells: str
    ) -> List[List[Any]]:
        ...

    def batch_update(
        self, spreadsheet_id: str, requests: Sequence[Mapping[str, Any]]
    ) -> List[Dict[str, Any]]:
        ...


def spreadsheet_url(spreadsheet_id: str) -> str:
    return f"{SPREADSHEET_URL_PREFIX}{spreadsheet_id}"


def _method_supports_parameter(method: object, parameter: str) -> bool:
    """Return True if a Google API client method accepts the given parameter."""

    method_desc = getattr(method, "_methodDesc", {})
    if isinstance(method_desc, dict):
        parameters = method_desc.get("parameters", {})
        return isinstance(parameters, dict) and parameter in parameters
    return False


def _describe_http_error(exc: Exception) -> str:
    if isinstance(exc, HttpError):
        status = getattr(exc, "status_code", None) or getattr(exc.resp, "status", None)
        reason = getattr(exc, "reason", None) or str(exc)
        if status:
            return f"HTTP {status}: {reason}"[:500]
        return str(reason)[:500]
    return str(exc)[:500]


class GoogleServices:
    """Drive v3 and Sheets v4 clients bound to one set of credentials."""

    def __init__(self, drive: Any, sheets: Any) -> None:
        self.drive = drive
        self.sheets = sheets

    @classmethod
    def from_credentials(cls, credentials: Any) -> "GoogleServices":
        drive = build("drive", "v3", credentials=credentials, cache_discovery=False)
        sheets = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return cls(drive, sheets)

    @classmethod
    def from_credentials_json(cls, blob: str) -> "GoogleServices":
        """Initialise both clients from an opaque credential blob."""

        from aufguss_scoring.credentials import load_credentials

        return cls.from_credentials(load_credentials(blob))

    def _with_shared_drives(self, method: Any, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        if _method_supports_parameter(method, "supportsAllDrives"):
            kwargs["supportsAllDrives"] = True
        return kwargs

    def create_folder(self, parent_id: str, name: str) -> str:
        files_resource = self.drive.files()
        body: Dict[str, Any] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
        if parent_id:
            body["parents"] = [parent_id]
        kwargs = self._with_shared_drives(
            files_resource.create, {"body": body, "fields": "id"}
        )
        try:
            created = files_resource.create(**kwargs).execute()
        except GOOGLE_API_ERRORS as exc:
            raise RemoteWriteError(
                f"Unable to create folder '{name}': {_describe_http_error(exc)}"
            ) from exc
        return str(created["id"])

    def copy_file(self, source_id: str, folder_id: str, name: str) -> str:
        files_resource = self.drive.files()
        body: Dict[str, Any] = {"name": name, "mimeType": SPREADSHEET_MIME_TYPE}
        if folder_id:
            body["parents"] = [folder_id]
        kwargs = self._with_shared_drives(
            files_resource.copy, {"fileId": source_id, "body": body, "fields": "id"}
        )
        try:
            copied = files_resource.copy(**kwargs).execute()
        except GOOGLE_API_ERRORS as exc:
            raise RemoteWriteError(
                f"Unable to copy spreadsheet {source_id}: {_describe_http_error(exc)}"
            ) from exc
        return str(copied["id"])

    def list_files(self, query: str) -> List[Dict[str, str]]:
        files_resource = self.drive.files()
        files: List[Dict[str, str]] = []
        page_token: Optional[str] = None
        while True:
            kwargs: Dict[str, Any] = {
                "q": query,
                "fields": "nextPageToken, files(id, name)",
                "pageSize": 100,
            }
            if page_token:
                kwargs["pageToken"] = page_token
            if _method_supports_parameter(files_resource.list, "includeItemsFromAllDrives"):
                kwargs["includeItemsFromAllDrives"] = True
            kwargs = self._with_shared_drives(files_resource.list, kwargs)
            try:
                response = files_resource.list(**kwargs).execute()
            except GOOGLE_API_ERRORS as exc:
                raise RemoteReadError(
                    f"Unable to list files: {_describe_http_error(exc)}"
                ) from exc
            for item in response.get("files", []):
                files.append({"id": str(item.get("id", "")), "name": str(item.get("name", ""))})
            page_token = response.get("nextPageToken")
            if not page_token:
                return files

    def get_spreadsheet_metadata(self, spreadsheet_id: str) -> List[SheetProperties]:
        spreadsheets_resource = self.sheets.spreadsheets()
        try:
            spreadsheet = spreadsheets_resource.get(
                spreadsheetId=spreadsheet_id,
                fields="sheets(properties(sheetId,title,index))",
            ).execute()
        except GOOGLE_API_ERRORS as exc:
            raise RemoteReadError(
                f"Unable to get spreadsheet details: {_describe_http_error(exc)}"
            ) from exc

        sheets: List[SheetProperties] = []
        for sheet in spreadsheet.get("sheets", []):
            properties = sheet.get("properties", {}) if isinstance(sheet, dict) else {}
            if "sheetId" not in properties and "title" not in properties:
                continue
            sheets.append(
                SheetProperties(
                    sheet_id=int(properties.get("sheetId", 0)),
                    title=str(properties.get("title", "")),
                    index=int(properties.get("index", 0)),
                )
            )
        return sheets

    def read_range(
        self, spreadsheet_id: str, sheet_name: str, cells: str
    ) -> List[List[Any]]:
        values_resource = self.sheets.spreadsheets().values()
        range_name = a1_range(sheet_name, cells)
        try:
            response = values_resource.get(
                spreadsheetId=spreadsheet_id, range=range_name
            ).execute()
        except GOOGLE_API_ERRORS as exc:
            raise RemoteReadError(
                f"Unable to read {range_name}: {_describe_http_error(exc)}"
            ) from exc
        return [list(row) for row in response.get("values", [])]

    def batch_update(
        self, spreadsheet_id: str, requests: Sequence[Mapping[str, Any]]
    ) -> List[Dict[str, Any]]:
        if not requests:
            return []
        logger.debug("batchUpdate %s with %d request(s)", spreadsheet_id, len(requests))
        spreadsheets_resource = self.sheets.spreadsheets()
        try:
            response = spreadsheets_resource.batchUpdate(
                spreadsheetId=spreadsheet_id,
                body={"requests": [dict(request) for request in requests]},
            ).execute()
        except GOOGLE_API_ERRORS as exc:
            raise RemoteWriteError(
                f"Batch update failed: {_describe_http_error(exc)}"
            ) from exc
        return list(response.get("replies", []))


def list_template_spreadsheets(
    services: SpreadsheetServices, folder_id: str
) -> List[Dict[str, str]]:
    """Return the spreadsheets stored directly inside ``folder_id``."""

    escaped_folder = folder_id.replace("\\", "\\\\").replace("'", "\\'")
    query = (
        f"'{escaped_folder}' in parents and mimeType='{SPREADSHEET_MIME_TYPE}' "
        "and trashed = false"
    )
    return services.list_files(query)
