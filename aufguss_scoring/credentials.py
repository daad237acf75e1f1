"""Turn a stored credential blob into Google API credentials."""

from __future__ import annotations

import json
from typing import Any, Dict

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import credentials as user_credentials
from google.oauth2 import service_account
from google_auth_oauthlib.flow import InstalledAppFlow

from aufguss_scoring.errors import CredentialsError

SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/spreadsheets",
]
MAX_BLOB_LENGTH = 10_000
SERVICE_ACCOUNT_TYPE = "service_account"
AUTHORIZED_USER_TYPE = "authorized_user"


def parse_credentials_blob(blob: str) -> Dict[str, Any]:
    """Validate the shape of a credential blob and return its JSON content."""

    if not blob or not blob.strip():
        raise CredentialsError("No credentials uploaded.")
    if len(blob) > MAX_BLOB_LENGTH:
        raise CredentialsError("Credentials file is too long.")
    try:
        info = json.loads(blob)
    except json.JSONDecodeError as exc:
        raise CredentialsError(f"Invalid JSON structure: {exc}") from exc
    if not isinstance(info, dict):
        raise CredentialsError("Invalid JSON structure: expected an object.")

    credential_type = info.get("type")
    if credential_type not in (SERVICE_ACCOUNT_TYPE, AUTHORIZED_USER_TYPE):
        raise CredentialsError(f"Invalid credentials type: {credential_type}")
    return info


def load_credentials(blob: str) -> Any:
    """Build refreshed credentials with Drive and Sheets scopes."""

    info = parse_credentials_blob(blob)
    try:
        if info["type"] == SERVICE_ACCOUNT_TYPE:
            return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)

        credentials = user_credentials.Credentials.from_authorized_user_info(info, SCOPES)
        if not credentials.valid and getattr(credentials, "refresh_token", None):
            credentials.refresh(Request())
    except (GoogleAuthError, ValueError) as exc:
        raise CredentialsError(f"Failed to load credentials: {exc}"[:500]) from exc

    if not credentials.valid:
        raise CredentialsError("Stored credentials are invalid. Please re-authorize.")
    return credentials


def authorize_installed_app(client_secrets_path: str) -> str:
    """Run the OAuth desktop flow and return an ``authorized_user`` blob."""

    try:
        flow = InstalledAppFlow.from_client_secrets_file(client_secrets_path, SCOPES)
        credentials = flow.run_local_server(port=0, open_browser=True)
    except (GoogleAuthError, ValueError, OSError) as exc:
        raise CredentialsError(f"Authorization failed: {exc}"[:500]) from exc
    return credentials.to_json()


def verify_credentials(blob: str) -> None:
    """Prove the credentials work by listing a single Drive file."""

    from aufguss_scoring.google_services import GoogleServices

    services = GoogleServices.from_credentials(load_credentials(blob))
    try:
        services.drive.files().list(pageSize=1, fields="files(id)").execute()
    except Exception as exc:  # pragma: no cover - network interaction
        raise CredentialsError(f"Authentication failed: {exc}"[:500]) from exc
