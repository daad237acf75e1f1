"""Application settings persisted under the user's home directory."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from aufguss_scoring.errors import ConfigurationError
from aufguss_scoring.pipeline import DEFAULT_TEMPLATE_SHEET_TITLE
from aufguss_scoring.scanner import DEFAULT_SCAN_WINDOW, ScanWindow

DATA_DIR = Path.home() / ".aufguss_scoring"
SETTINGS_FILENAME = "settings.json"
CREDENTIALS_FILENAME = "credentials.json"
COMPETITIONS_DIRNAME = "competitions"


@dataclass
class Settings:
    folder_id: str = ""
    template_sheet_title: str = DEFAULT_TEMPLATE_SHEET_TITLE
    scan_max_rows: int = DEFAULT_SCAN_WINDOW.max_rows
    scan_last_column: str = DEFAULT_SCAN_WINDOW.last_column

    @property
    def scan_window(self) -> ScanWindow:
        try:
            return ScanWindow(self.scan_max_rows, self.scan_last_column)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        defaults = cls()
        try:
            max_rows = int(data.get("scan_max_rows", defaults.scan_max_rows))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid scan_max_rows: {exc}") from exc
        return cls(
            folder_id=str(data.get("folder_id", defaults.folder_id)).strip(),
            template_sheet_title=str(
                data.get("template_sheet_title") or defaults.template_sheet_title
            ),
            scan_max_rows=max_rows,
            scan_last_column=str(
                data.get("scan_last_column") or defaults.scan_last_column
            ).upper(),
        )

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> "Settings":
        path = (data_dir or DATA_DIR) / SETTINGS_FILENAME
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Failed to load settings from {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file {path} must contain an object.")
        return cls.from_dict(data)

    def save(self, data_dir: Optional[Path] = None) -> Path:
        directory = data_dir or DATA_DIR
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / SETTINGS_FILENAME
        path.write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")
        return path


def load_credentials_blob(data_dir: Optional[Path] = None) -> str:
    path = (data_dir or DATA_DIR) / CREDENTIALS_FILENAME
    if not path.exists():
        return ""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Failed to read credentials from {path}: {exc}") from exc


def save_credentials_blob(blob: str, data_dir: Optional[Path] = None) -> Path:
    directory = data_dir or DATA_DIR
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / CREDENTIALS_FILENAME
    path.write_text(blob, encoding="utf-8")
    return path


def competitions_dir(data_dir: Optional[Path] = None) -> Path:
    return (data_dir or DATA_DIR) / COMPETITIONS_DIRNAME
