"""Aufguss Scoring Generator GUI.

This module launches a Tkinter application with a Competition tab for
editing and generating competitions and a Preferences tab for the Google
Drive folder and credentials.
"""

from __future__ import annotations

import importlib.util

if importlib.util.find_spec("tkinter") is None:  # pragma: no cover - import-time guard
    raise ModuleNotFoundError(
        "tkinter is not available in this Python installation. "
        "On macOS with Homebrew Python, install it with 'brew install python-tk@3.13'."
    )

import json
import logging
import threading
import tkinter as tk
from enum import IntEnum
from pathlib import Path
from tkinter import filedialog, messagebox, ttk
from typing import Callable, Dict, List, Optional, Tuple

from aufguss_scoring.credentials import (
    authorize_installed_app,
    parse_credentials_blob,
    verify_credentials,
)
from aufguss_scoring.errors import ConfigurationError, GenerationError
from aufguss_scoring.google_services import GoogleServices, list_template_spreadsheets
from aufguss_scoring.models import (
    Competition,
    format_contestants,
    format_jury,
    parse_contestant_lines,
    parse_jury_lines,
    validate_competition,
)
from aufguss_scoring.pipeline import CancellationToken, GenerationPipeline
from aufguss_scoring.settings import (
    DATA_DIR,
    Settings,
    competitions_dir,
    load_credentials_blob,
    save_credentials_blob,
)
from aufguss_scoring.store import CompetitionStore

CREATE_NEW_OPTION = "[Create New]"


def _get_widget_background(widget: tk.Misc, fallback: tk.Misc) -> str:
    """Return a usable background color for a widget.

    ttk widgets such as ``ttk.Frame`` don't expose a ``-background`` option,
    so fall back to the top-level window or the fallback widget.
    """

    for candidate in (widget, widget.winfo_toplevel(), fallback):
        try:
            background = str(candidate.cget("background"))
        except tk.TclError:
            continue
        if background:
            return background
    return str(fallback.cget("background"))


class ApplicationConsole:
    """Display progress messages emitted by tools across the application."""

    class LogLevel(IntEnum):
        INFO = 10
        WARN = 20

    def __init__(self, parent: tk.Misc) -> None:
        self.parent = parent
        self._text_widget: Optional[tk.Text] = None
        self._level: "ApplicationConsole.LogLevel" = self.LogLevel.INFO

    def render(self, row: int) -> None:
        self.parent.columnconfigure(0, weight=1)
        self.parent.rowconfigure(row, weight=1)

        frame = ttk.Frame(self.parent, padding=(16, 0, 16, 16))
        frame.grid(row=row, column=0, sticky="nsew")
        frame.columnconfigure(0, weight=1)

        ttk.Label(frame, text="Log", font=("Helvetica", 12, "bold")).grid(
            row=0, column=0, sticky="w", pady=(0, 8)
        )
        ttk.Button(frame, text="Clear", command=self.clear).grid(
            row=0, column=1, sticky="e", pady=(0, 8)
        )

        text_widget = tk.Text(
            frame,
            height=10,
            wrap="word",
            borderwidth=1,
            relief="solid",
            cursor="xterm",
        )
        background = _get_widget_background(frame, text_widget)
        text_widget.configure(background=background, state="disabled")
        text_widget.grid(row=1, column=0, columnspan=2, sticky="nsew")

        scrollbar = ttk.Scrollbar(frame, orient="vertical", command=text_widget.yview)
        scrollbar.grid(row=1, column=2, sticky="ns")
        text_widget.configure(yscrollcommand=scrollbar.set)

        frame.rowconfigure(1, weight=1)
        self._text_widget = text_widget

    def set_level(self, level: "ApplicationConsole.LogLevel") -> None:
        self._level = level

    def log(
        self,
        message: str,
        *,
        level: "ApplicationConsole.LogLevel" | None = None,
    ) -> None:
        """Append ``message``. Safe to call from worker threads."""

        if not message:
            return
        widget = self._text_widget
        if widget is None:
            return

        current_level = level if level is not None else self.LogLevel.WARN
        if current_level < self._level:
            return

        def _append() -> None:
            widget.configure(state="normal")
            if widget.index("end-1c") != "1.0":
                widget.insert(tk.END, "\n")
            widget.insert(tk.END, message)
            widget.see(tk.END)
            widget.configure(state="disabled")

        widget.after(0, _append)

    def log_info(self, message: str) -> None:
        self.log(message, level=self.LogLevel.INFO)

    def log_warn(self, message: str) -> None:
        self.log(message, level=self.LogLevel.WARN)

    def clear(self) -> None:
        widget = self._text_widget
        if widget is None:
            return
        widget.configure(state="normal")
        widget.delete("1.0", tk.END)
        widget.configure(state="disabled")


class PreferencesUI:
    """Edit the Drive folder ID and load credentials."""

    def __init__(self, parent: ttk.Frame, console: ApplicationConsole, data_dir: Path) -> None:
        self.parent = parent
        self.console = console
        self.data_dir = data_dir
        self.folder_id_var = tk.StringVar()
        self.template_title_var = tk.StringVar()
        self.credentials_status_var = tk.StringVar(value="No credentials uploaded.")
        self._settings = Settings()
        self._settings_listeners: List[Callable[[Settings], None]] = []

    @property
    def settings(self) -> Settings:
        return self._settings

    def credentials_blob(self) -> str:
        return load_credentials_blob(self.data_dir)

    def add_settings_listener(self, callback: Callable[[Settings], None]) -> None:
        self._settings_listeners.append(callback)

    def render(self, row: int) -> None:
        ttk.Label(self.parent, text="Google Drive Folder ID:").grid(
            row=row, column=0, sticky="w", pady=(8, 0)
        )
        ttk.Entry(self.parent, textvariable=self.folder_id_var).grid(
            row=row, column=1, sticky="ew", padx=(8, 0), pady=(8, 0)
        )
        ttk.Label(
            self.parent,
            text=(
                "The folder ID is the last part of the folder URL, e.g. "
                "https://drive.google.com/drive/folders/<folder ID>"
            ),
            wraplength=520,
            justify="left",
        ).grid(row=row + 1, column=0, columnspan=2, sticky="w", pady=(4, 0))

        ttk.Label(self.parent, text="Template sheet name:").grid(
            row=row + 2, column=0, sticky="w", pady=(8, 0)
        )
        ttk.Entry(self.parent, textvariable=self.template_title_var).grid(
            row=row + 2, column=1, sticky="ew", padx=(8, 0), pady=(8, 0)
        )

        ttk.Button(self.parent, text="Save", command=self.save).grid(
            row=row + 3, column=1, sticky="e", pady=8
        )

        ttk.Separator(self.parent, orient="horizontal").grid(
            row=row + 4, column=0, columnspan=2, sticky="ew", pady=12
        )

        ttk.Button(
            self.parent,
            text="Upload JSON Key",
            command=self.select_credentials_file,
        ).grid(row=row + 5, column=0, sticky="w", pady=8)
        ttk.Entry(
            self.parent,
            textvariable=self.credentials_status_var,
            state="readonly",
        ).grid(row=row + 5, column=1, sticky="ew", padx=(8, 0), pady=8)

        self._load()

    def _load(self) -> None:
        try:
            self._settings = Settings.load(self.data_dir)
        except ConfigurationError as exc:
            self.set_status(str(exc))
            self._settings = Settings()
        self.folder_id_var.set(self._settings.folder_id)
        self.template_title_var.set(self._settings.template_sheet_title)
        try:
            has_credentials = bool(self.credentials_blob())
        except ConfigurationError as exc:
            self.set_status(str(exc))
            has_credentials = False
        self._set_credentials_status(has_credentials)
        self._notify_settings_listeners()

    def save(self) -> None:
        self._settings.folder_id = self.folder_id_var.get().strip()
        title = self.template_title_var.get().strip()
        if title:
            self._settings.template_sheet_title = title
        try:
            path = self._settings.save(self.data_dir)
        except OSError as exc:
            self.set_status(f"Failed to save preferences: {exc}"[:500])
            return
        self.set_status(f"Preferences saved to {path}.")
        self._notify_settings_listeners()

    def _notify_settings_listeners(self) -> None:
        for listener in list(self._settings_listeners):
            listener(self._settings)

    def select_credentials_file(self) -> None:
        filename = filedialog.askopenfilename(
            parent=self.parent,
            title="Select Google credentials JSON",
            filetypes=[("JSON files", "*.json"), ("All files", "*")],
        )
        if not filename:
            return

        try:
            content = Path(filename).read_text(encoding="utf-8")
        except OSError as exc:
            self.set_status(f"Failed to read file: {exc}"[:500])
            return

        self.set_status("Checking credentials...")
        threading.Thread(
            target=self._import_credentials_worker, args=(filename, content), daemon=True
        ).start()

    def _import_credentials_worker(self, filename: str, content: str) -> None:
        try:
            if _is_client_secrets(content):
                blob = authorize_installed_app(filename)
            else:
                parse_credentials_blob(content)
                blob = content
            verify_credentials(blob)
        except GenerationError as exc:
            message = f"Invalid credentials: {exc}"
            self.parent.after(0, lambda: self.set_status(message))
            return

        def _on_success() -> None:
            try:
                path = save_credentials_blob(blob, self.data_dir)
            except OSError as exc:
                self.set_status(f"Saving credentials failed: {exc}"[:500])
                return
            self._set_credentials_status(True)
            self.set_status(f"Credentials uploaded and saved to {path}.")
            self._notify_settings_listeners()

        self.parent.after(0, _on_success)

    def _set_credentials_status(self, uploaded: bool) -> None:
        self.credentials_status_var.set(
            "Credentials Uploaded." if uploaded else "No credentials uploaded."
        )

    def set_status(self, message: str, *, log: bool = True) -> None:
        if log:
            self.console.log(f"[Preferences] {message}")


def _is_client_secrets(content: str) -> bool:
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return False
    return isinstance(data, dict) and ("installed" in data or "web" in data)


class CompetitionEditorUI:
    """Edit, save and generate competitions."""

    TEMPLATE_POLL_INTERVAL_MS = 30_000

    def __init__(
        self,
        parent: ttk.Frame,
        console: ApplicationConsole,
        preferences: PreferencesUI,
        store: CompetitionStore,
    ) -> None:
        self.parent = parent
        self.console = console
        self.preferences = preferences
        self.store = store
        self.file_var = tk.StringVar()
        self.name_var = tk.StringVar()
        self.template_var = tk.StringVar()
        self._status_var = tk.StringVar()
        self._templates: Dict[str, str] = {}
        self._pending_template_id = ""
        self._template_poll_after_id: Optional[str] = None
        self._cancel_token: Optional[CancellationToken] = None
        self._file_select: Optional[ttk.Combobox] = None
        self._template_select: Optional[ttk.Combobox] = None
        self._jury_text: Optional[tk.Text] = None
        self._contestants_text: Optional[tk.Text] = None
        self._generate_button: Optional[ttk.Button] = None
        self._cancel_button: Optional[ttk.Button] = None

        self.preferences.add_settings_listener(lambda _settings: self.refresh_templates())

    def render(self, row: int) -> None:
        ttk.Label(self.parent, text="Select Competition:").grid(
            row=row, column=0, sticky="w", pady=(8, 0)
        )
        file_select = ttk.Combobox(self.parent, textvariable=self.file_var, state="readonly")
        file_select.grid(row=row, column=1, sticky="ew", padx=(8, 0), pady=(8, 0))
        file_select.bind("<<ComboboxSelected>>", lambda _event: self.load_selected())
        self._file_select = file_select

        ttk.Label(self.parent, text="Competition Name:").grid(
            row=row + 1, column=0, sticky="w", pady=(8, 0)
        )
        ttk.Entry(self.parent, textvariable=self.name_var).grid(
            row=row + 1, column=1, sticky="ew", padx=(8, 0), pady=(8, 0)
        )

        ttk.Label(self.parent, text="Template Sheet:").grid(
            row=row + 2, column=0, sticky="w", pady=(8, 0)
        )
        template_select = ttk.Combobox(
            self.parent, textvariable=self.template_var, state="readonly"
        )
        template_select.grid(row=row + 2, column=1, sticky="ew", padx=(8, 0), pady=(8, 0))
        self._template_select = template_select

        ttk.Label(self.parent, text="Jury (name; weight per line):").grid(
            row=row + 3, column=0, sticky="nw", pady=(8, 0)
        )
        self._jury_text = tk.Text(self.parent, height=6, wrap="none")
        self._jury_text.grid(row=row + 3, column=1, sticky="nsew", padx=(8, 0), pady=(8, 0))

        ttk.Label(self.parent, text="Contestants (one per line):").grid(
            row=row + 4, column=0, sticky="nw", pady=(8, 0)
        )
        self._contestants_text = tk.Text(self.parent, height=8, wrap="none")
        self._contestants_text.grid(
            row=row + 4, column=1, sticky="nsew", padx=(8, 0), pady=(8, 0)
        )

        buttons = ttk.Frame(self.parent)
        buttons.grid(row=row + 5, column=0, columnspan=2, sticky="ew", pady=8)
        buttons.columnconfigure(2, weight=1)
        ttk.Button(buttons, text="Save", command=self.save).grid(row=0, column=0)
        ttk.Button(buttons, text="Delete", command=self.delete).grid(
            row=0, column=1, padx=(8, 0)
        )
        self._generate_button = ttk.Button(buttons, text="Generate!", command=self.generate)
        self._generate_button.grid(row=0, column=3)
        self._cancel_button = ttk.Button(
            buttons, text="Cancel", command=self.cancel, state="disabled"
        )
        self._cancel_button.grid(row=0, column=4, padx=(8, 0))

        ttk.Label(
            self.parent,
            textvariable=self._status_var,
            wraplength=520,
            justify="left",
        ).grid(row=row + 6, column=0, columnspan=2, sticky="w")

        self._reload_file_options()
        self._schedule_template_poll(0)

    def set_status(self, message: str, *, log: bool = True) -> None:
        self._status_var.set(message)
        if log:
            self.console.log(f"[Generator] {message}")

    def _reload_file_options(self, selected: str = "") -> None:
        try:
            names = self.store.list_names()
        except OSError as exc:
            self.set_status(f"Failed to list competitions: {exc}"[:500])
            names = []
        if self._file_select is not None:
            self._file_select.configure(values=names + [CREATE_NEW_OPTION])
        self.file_var.set(selected)

    def load_selected(self) -> None:
        selected = self.file_var.get()
        if not selected:
            return
        if selected == CREATE_NEW_OPTION:
            competition = Competition(name="")
        else:
            try:
                competition = self.store.load(selected)
            except ConfigurationError as exc:
                self.set_status(str(exc))
                return
        self._show_competition(competition)

    def _show_competition(self, competition: Competition) -> None:
        self.name_var.set(competition.name)
        self._pending_template_id = competition.source_sheet_id
        self._select_template_by_id(competition.source_sheet_id)
        self._replace_text(self._jury_text, format_jury(competition.jury))
        self._replace_text(self._contestants_text, format_contestants(competition.contestants))

    @staticmethod
    def _replace_text(widget: Optional[tk.Text], content: str) -> None:
        if widget is None:
            return
        widget.delete("1.0", tk.END)
        widget.insert("1.0", content)

    @staticmethod
    def _read_text(widget: Optional[tk.Text]) -> str:
        if widget is None:
            return ""
        return widget.get("1.0", "end-1c")

    def _select_template_by_id(self, template_id: str) -> None:
        for name, file_id in self._templates.items():
            if file_id == template_id:
                self.template_var.set(name)
                return
        self.template_var.set("")

    def build_competition(self) -> Competition:
        """Read the form into an immutable ``Competition`` value."""

        template_id = self._templates.get(self.template_var.get(), self._pending_template_id)
        return Competition.build(
            self.name_var.get(),
            template_id,
            parse_jury_lines(self._read_text(self._jury_text)),
            parse_contestant_lines(self._read_text(self._contestants_text)),
        )

    def save(self) -> Optional[Competition]:
        try:
            competition = self.build_competition()
            self.store.save(competition)
        except (GenerationError, ConfigurationError, OSError) as exc:
            messagebox.showerror("Error", str(exc), parent=self.parent)
            return None
        self._reload_file_options(self.store.filename_for(competition))
        self.set_status("Competition saved successfully.")
        return competition

    def delete(self) -> None:
        selected = self.file_var.get()
        if not selected or selected == CREATE_NEW_OPTION:
            messagebox.showinfo(
                "No Selection", "Please select a valid file to delete.", parent=self.parent
            )
            return
        if not messagebox.askyesno(
            "Confirm Delete",
            f"Are you sure you want to delete '{selected}'?",
            parent=self.parent,
        ):
            return
        try:
            self.store.delete(selected)
        except ConfigurationError as exc:
            messagebox.showerror("Error", str(exc), parent=self.parent)
            return
        self._reload_file_options()
        self._show_competition(Competition(name=""))
        self.set_status(f"Deleted '{selected}'.")

    def generate(self) -> None:
        try:
            competition = self.build_competition()
            validate_competition(competition)
        except GenerationError as exc:
            messagebox.showerror("Error", str(exc), parent=self.parent)
            return

        settings = self.preferences.settings
        if not settings.folder_id:
            self.set_status("Set the Google Drive folder ID in Preferences first.")
            return
        try:
            blob = self.preferences.credentials_blob()
            scan_window = settings.scan_window
        except ConfigurationError as exc:
            self.set_status(str(exc))
            return
        if not blob:
            self.set_status("Upload Google credentials in Preferences first.")
            return

        if self.save() is None:
            return

        cancel_token = CancellationToken()
        self._cancel_token = cancel_token
        self._set_running(True)
        self.set_status("Generating...")

        def _worker() -> None:
            try:
                services = GoogleServices.from_credentials_json(blob)
                pipeline = GenerationPipeline(
                    services,
                    settings.folder_id,
                    log_status=lambda message: self.console.log(f"[Generator] {message}"),
                    cancel_token=cancel_token,
                    scan_window=scan_window,
                    template_sheet_title=settings.template_sheet_title,
                )
                result = pipeline.run(competition)
            except GenerationError as exc:
                message = f"Error: {exc}"
                self.parent.after(0, lambda: self._finish(message))
                return
            except Exception as exc:  # pragma: no cover - network interaction
                logging.getLogger(__name__).exception("Generation crashed")
                message = f"Error: {exc}"[:500]
                self.parent.after(0, lambda: self._finish(message))
                return
            self.parent.after(
                0,
                lambda: self._finish(
                    f"Generated overview {result.overview_id} and "
                    f"{len(result.juror_document_ids)} juror spreadsheet(s)."
                ),
            )

        threading.Thread(target=_worker, daemon=True).start()

    def cancel(self) -> None:
        if self._cancel_token is not None:
            self._cancel_token.cancel()
            self.set_status("Cancelling after the current step...")

    def _finish(self, message: str) -> None:
        self._cancel_token = None
        self._set_running(False)
        self.set_status(message, log=False)

    def _set_running(self, running: bool) -> None:
        if self._generate_button is not None:
            self._generate_button.configure(state="disabled" if running else "normal")
        if self._cancel_button is not None:
            self._cancel_button.configure(state="normal" if running else "disabled")

    def _schedule_template_poll(self, delay_ms: int) -> None:
        if self._template_poll_after_id is not None:
            try:
                self.parent.after_cancel(self._template_poll_after_id)
            except tk.TclError:
                pass
        self._template_poll_after_id = self.parent.after(delay_ms, self._poll_templates)

    def _poll_templates(self) -> None:
        self.refresh_templates()
        self._schedule_template_poll(self.TEMPLATE_POLL_INTERVAL_MS)

    def refresh_templates(self) -> None:
        folder_id = self.preferences.settings.folder_id
        try:
            blob = self.preferences.credentials_blob()
        except ConfigurationError as exc:
            self.set_status(str(exc))
            return
        if not folder_id or not blob:
            return

        def _worker() -> None:
            try:
                services = GoogleServices.from_credentials_json(blob)
                files = list_template_spreadsheets(services, folder_id)
            except GenerationError as exc:
                message = f"Failed to fetch files from Google Drive folder: {exc}"
                self.parent.after(0, lambda: self.set_status(message))
                return
            templates = [(item["name"], item["id"]) for item in files]
            self.parent.after(0, lambda: self._update_templates(templates))

        threading.Thread(target=_worker, daemon=True).start()

    def _update_templates(self, templates: List[Tuple[str, str]]) -> None:
        current_id = self._templates.get(self.template_var.get(), self._pending_template_id)
        self._templates = dict(templates)
        if self._template_select is not None:
            self._template_select.configure(values=[name for name, _ in templates])
        if not templates:
            self.set_status("No files were found in the folder or you don't have access.")
        self._select_template_by_id(current_id)


def create_main_window(data_dir: Optional[Path] = None) -> tk.Tk:
    """Create and configure the main application window."""

    root = tk.Tk()
    root.title("Scoring Sheet Generator")
    root.geometry("800x700")
    root.columnconfigure(0, weight=1)
    root.rowconfigure(1, weight=1)

    ttk.Label(
        root,
        text="Aufguss Scoring Sheet Generator",
        font=("Helvetica", 18, "bold"),
        anchor="center",
    ).grid(row=0, column=0, padx=16, pady=(16, 8), sticky="ew")

    paned = ttk.PanedWindow(root, orient="vertical")
    paned.grid(row=1, column=0, padx=16, pady=(0, 16), sticky="nsew")

    notebook_container = ttk.Frame(paned)
    notebook_container.columnconfigure(0, weight=1)
    notebook_container.rowconfigure(0, weight=1)
    notebook = ttk.Notebook(notebook_container)
    notebook.grid(row=0, column=0, sticky="nsew")

    competition_frame = ttk.Frame(notebook, padding=(12, 12, 12, 12))
    preferences_frame = ttk.Frame(notebook, padding=(12, 12, 12, 12))
    for frame in (competition_frame, preferences_frame):
        frame.columnconfigure(1, weight=1)
    notebook.add(competition_frame, text="Competition")
    notebook.add(preferences_frame, text="Preferences")
    paned.add(notebook_container, weight=3)

    console_container = ttk.Frame(paned)
    console_container.columnconfigure(0, weight=1)
    console_container.rowconfigure(0, weight=1)
    paned.add(console_container, weight=1)

    console = ApplicationConsole(console_container)
    console.render(row=0)

    directory = data_dir or DATA_DIR
    preferences = PreferencesUI(preferences_frame, console, directory)
    editor = CompetitionEditorUI(
        competition_frame, console, preferences, CompetitionStore(competitions_dir(directory))
    )
    editor.render(row=0)
    preferences.render(row=0)

    return root


def main() -> None:
    """Run the application."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    root = create_main_window()
    root.mainloop()


if __name__ == "__main__":
    main()
