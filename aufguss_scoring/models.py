"""Competition definitions and the values threaded through a generation run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from aufguss_scoring.errors import ValidationError

MIN_WEIGHT = 0
MAX_WEIGHT = 100
DEFAULT_WEIGHT = 100


@dataclass(frozen=True)
class Juror:
    name: str
    weight: int = DEFAULT_WEIGHT

    @property
    def weight_fraction(self) -> float:
        return self.weight / 100


@dataclass(frozen=True)
class Contestant:
    name: str


@dataclass(frozen=True)
class Competition:
    """A competition definition.

    Jury and contestants are tuples: their order decides the generated sheet
    and row order and must never change during a run.
    """

    name: str
    source_sheet_id: str = ""
    jury: Tuple[Juror, ...] = ()
    contestants: Tuple[Contestant, ...] = ()

    @classmethod
    def build(
        cls,
        name: str,
        source_sheet_id: str,
        jury: Iterable[Juror],
        contestants: Iterable[Contestant],
    ) -> "Competition":
        return cls(
            name=name.strip(),
            source_sheet_id=source_sheet_id.strip(),
            jury=tuple(Juror(juror.name, int(juror.weight)) for juror in jury),
            contestants=tuple(Contestant(contestant.name) for contestant in contestants),
        )

    def snapshot(self) -> "Competition":
        """Return a detached copy safe to hand to a worker thread."""

        return Competition.build(
            self.name, self.source_sheet_id, list(self.jury), list(self.contestants)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "source_sheet_id": self.source_sheet_id,
            "jury": [{"name": juror.name, "weight": juror.weight} for juror in self.jury],
            "contestants": [{"name": contestant.name} for contestant in self.contestants],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Competition":
        jury_data = data.get("jury") or []
        contestant_data = data.get("contestants") or []
        return cls(
            name=str(data.get("name") or ""),
            source_sheet_id=str(data.get("source_sheet_id") or ""),
            jury=tuple(
                Juror(str(item.get("name") or ""), _coerce_weight(item.get("weight", 0)))
                for item in jury_data
                if isinstance(item, Mapping)
            ),
            contestants=tuple(
                Contestant(str(item.get("name") or ""))
                for item in contestant_data
                if isinstance(item, Mapping)
            ),
        )


@dataclass(frozen=True)
class MarkerRow:
    """A ``Points:`` row found in the pristine template sheet."""

    row: int
    end_column: str = ""


@dataclass(frozen=True)
class SheetProperties:
    sheet_id: int
    title: str
    index: int = 0


@dataclass
class GeneratedDocumentSet:
    folder_id: str = ""
    overview_id: str = ""
    sheet_names: Tuple[str, ...] = ()
    juror_document_ids: Tuple[str, ...] = ()
    marker_rows: Tuple[MarkerRow, ...] = ()


def _coerce_weight(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def validate_competition(competition: Competition) -> None:
    """Raise ``ValidationError`` describing the first problem found."""

    if not competition.name.strip():
        raise ValidationError("Competition name cannot be empty.")

    if not competition.jury:
        raise ValidationError("There must be at least one juror.")

    for number, juror in enumerate(competition.jury, start=1):
        if not juror.name.strip():
            raise ValidationError(f"Juror #{number} has an empty name.")
        if juror.weight < MIN_WEIGHT or juror.weight > MAX_WEIGHT:
            raise ValidationError(
                f"Juror #{number} has an invalid weight ({juror.weight}). "
                f"Must be between {MIN_WEIGHT} and {MAX_WEIGHT}."
            )

    if not competition.contestants:
        raise ValidationError("There must be at least one contestant.")

    for number, contestant in enumerate(competition.contestants, start=1):
        if not contestant.name.strip():
            raise ValidationError(f"Contestant #{number} has an empty name.")

    if not competition.source_sheet_id.strip():
        raise ValidationError("A template sheet must be defined.")


def parse_contestant_lines(text: str) -> List[Contestant]:
    """Return one contestant per non-blank line of ``text``."""

    return [Contestant(line.strip()) for line in text.splitlines() if line.strip()]


def format_contestants(contestants: Sequence[Contestant]) -> str:
    return "".join(f"{contestant.name}\n" for contestant in contestants)


def parse_jury_lines(text: str) -> List[Juror]:
    """Parse ``name; weight`` lines into jurors.

    A missing weight defaults to 100. A weight that is not a whole number
    raises ``ValidationError`` naming the offending line.
    """

    jurors: List[Juror] = []
    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue
        name, separator, weight_text = line.rpartition(";")
        if not separator:
            jurors.append(Juror(line, DEFAULT_WEIGHT))
            continue
        weight_text = weight_text.strip()
        try:
            weight = int(weight_text) if weight_text else DEFAULT_WEIGHT
        except ValueError:
            raise ValidationError(
                f"Line {line_number}: weight {weight_text!r} is not a whole number."
            ) from None
        jurors.append(Juror(name.strip(), weight))
    return jurors


def format_jury(jury: Sequence[Juror]) -> str:
    return "".join(f"{juror.name}; {juror.weight}\n" for juror in jury)
