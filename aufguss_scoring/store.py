"""JSON files holding saved competition definitions."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import List

from aufguss_scoring.errors import ConfigurationError, ValidationError
from aufguss_scoring.models import Competition

logger = logging.getLogger(__name__)

FILE_SUFFIX = ".json"
UNSAFE_FILENAME_CHARACTERS = re.compile(r"[\\/:\x00]")


class CompetitionStore:
    """One ``<name>.json`` file per competition inside ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def filename_for(self, competition: Competition) -> str:
        """Return the file name for ``competition``; path separators become ``_``."""

        stem = UNSAFE_FILENAME_CHARACTERS.sub("_", competition.name.strip())
        return f"{stem}{FILE_SUFFIX}"

    def _path(self, filename: str) -> Path:
        path = self.directory / filename
        if path.parent != self.directory:
            raise ConfigurationError(f"Invalid competition file name: {filename!r}")
        return path

    def list_names(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(
            path.name
            for path in self.directory.iterdir()
            if path.is_file() and path.suffix == FILE_SUFFIX
        )

    def load(self, filename: str) -> Competition:
        path = self._path(filename)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Failed to load competition {filename}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Competition file {filename} must contain an object.")
        return Competition.from_dict(data)

    def save(self, competition: Competition) -> Path:
        if not competition.name.strip():
            raise ValidationError("Competition name cannot be empty.")
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(self.filename_for(competition))
        path.write_text(json.dumps(competition.to_dict(), indent=2), encoding="utf-8")
        logger.info("Saved competition to %s", path)
        return path

    def delete(self, filename: str) -> None:
        path = self._path(filename)
        try:
            path.unlink()
        except OSError as exc:
            raise ConfigurationError(f"Failed to delete file: {exc}") from exc
