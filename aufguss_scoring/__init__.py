"""Generate linked Google spreadsheets for scored competitions."""

__version__ = "1.0.0"
