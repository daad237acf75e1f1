"""Conversions between spreadsheet column numbers and A1 letters."""

from __future__ import annotations


def letter_to_index(letters: str) -> int:
    """Convert a column address such as ``"AB"`` to its 1-based index.

    Returns 0 for empty input or anything that is not a plain column address,
    so callers can tell "no column" apart from column ``A``.
    """

    if not letters:
        return 0
    result = 0
    for char in letters.upper():
        if not "A" <= char <= "Z":
            return 0
        result = result * 26 + (ord(char) - ord("A") + 1)
    return result


def index_to_letter(index: int) -> str:
    """Convert a 1-based column index to its Excel-style letter."""

    if index <= 0:
        raise ValueError(f"Column index must be positive, got {index}.")
    result = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        result = chr(65 + remainder) + result
    return result


def quote_sheet_title(sheet_title: str) -> str:
    escaped_title = sheet_title.replace("'", "''")
    return f"'{escaped_title}'"


def a1_range(sheet_title: str, cells: str) -> str:
    """Return a properly quoted A1 range such as ``'Board'!A1:Z200``."""

    return f"{quote_sheet_title(sheet_title)}!{cells}"


def row_range(first_column: str, last_column: str, row: int) -> str:
    """Return ``A5:Z5`` style cells for a single row."""

    return f"{first_column}{row}:{last_column}{row}"
