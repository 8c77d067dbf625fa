"""Project tab - shows the tracks and devices of a project before converting it."""

import logging
import threading
from pathlib import Path
from tkinter import filedialog

import customtkinter as ctk

from reaperconverter.core.context import ConversionContext
from reaperconverter.core.errors import ConversionError
from reaperconverter.formats.dawproject_format import DawProjectContainer, load_dawproject
from reaperconverter.formats.reaper_source import read_reaper_project
from reaperconverter.gui import theme
from reaperconverter.gui.tab_convert import FILE_TYPES
from reaperconverter.gui.widgets.project_tree import ProjectTree
from reaperconverter.utils.config import ConverterSettings
from reaperconverter.utils.file_utils import format_size, is_dawproject, is_reaper_project

logger = logging.getLogger(__name__)


def load_project(path: Path, context: ConversionContext | None = None) -> DawProjectContainer:
    if is_reaper_project(path):
        return read_reaper_project(path, context)
    if is_dawproject(path):
        return load_dawproject(path)
    raise ConversionError("Unknown project type", path.name)


def count_tracks(tracks) -> int:
    return sum(1 + count_tracks(track.tracks) for track in tracks)


class ProjectTab:
    """Read-only overview of a REAPER or DAWproject file."""

    def __init__(self, parent: ctk.CTkFrame, app, settings: ConverterSettings):
        self.parent = parent
        self.app = app
        self.settings = settings
        self.container: DawProjectContainer | None = None
        self._build_ui()

    def _build_ui(self):
        top_frame = ctk.CTkFrame(self.parent, fg_color="transparent")
        top_frame.pack(fill="x", padx=15, pady=(15, 5))

        ctk.CTkLabel(
            top_frame,
            text="Projekt:",
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_BODY),
        ).pack(side="left", padx=(0, 10))

        self.path_var = ctk.StringVar()
        ctk.CTkEntry(
            top_frame,
            textvariable=self.path_var,
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_BODY),
            fg_color=theme.BG_TERTIARY,
        ).pack(side="left", fill="x", expand=True, padx=(0, 10))

        ctk.CTkButton(
            top_frame,
            text="Datei...",
            width=80,
            command=self._browse,
            fg_color=theme.BG_TERTIARY,
            hover_color=theme.BG_HOVER,
        ).pack(side="left", padx=(0, 5))

        self.load_btn = ctk.CTkButton(
            top_frame,
            text="Laden",
            width=100,
            command=self._load,
            fg_color=theme.ACCENT_DARK,
            hover_color=theme.ACCENT,
        )
        self.load_btn.pack(side="left", padx=(0, 5))

        self.convert_btn = ctk.CTkButton(
            top_frame,
            text="Konvertieren...",
            width=120,
            command=self._open_in_converter,
            fg_color=theme.BG_TERTIARY,
            hover_color=theme.ACCENT_SUCCESS,
            state="disabled",
        )
        self.convert_btn.pack(side="left")

        self.status_var = ctk.StringVar(value="Projekt auswaehlen und 'Laden' klicken")
        ctk.CTkLabel(
            self.parent,
            textvariable=self.status_var,
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_SMALL),
            text_color=theme.TEXT_MUTED,
        ).pack(fill="x", padx=15, pady=(5, 5))

        self.tree = ProjectTree(self.parent)
        self.tree.pack(fill="both", expand=True, padx=15, pady=(5, 15))

    def _browse(self):
        filename = filedialog.askopenfilename(
            title="Projekt auswaehlen",
            initialdir=self.settings.source_path,
            filetypes=FILE_TYPES,
        )
        if filename:
            self.path_var.set(filename)
            self._load()

    def _load(self):
        path = self.path_var.get().strip()
        if not path:
            return
        self.load_btn.configure(state="disabled")
        self.convert_btn.configure(state="disabled")
        self.status_var.set("Lade Projekt...")
        threading.Thread(target=self._run_load, args=(Path(path),), daemon=True).start()

    def _run_load(self, path: Path):
        try:
            context = ConversionContext(lenient_midi=self.settings.lenient_midi)
            container = load_project(path, context)
            size = format_size(path.stat().st_size)
        except (ConversionError, OSError) as e:
            logger.error("Could not load %s: %s", path.name, e)
            message = f"Fehler: {e}"
            self.parent.after(0, lambda: self.status_var.set(message))
            self.parent.after(0, lambda: self.load_btn.configure(state="normal"))
            return

        def update_ui():
            self.container = container
            project = container.project
            markers = len(project.arrangement.markers.markers) if project.arrangement.markers else 0
            tempo = project.transport.tempo.value if project.transport.tempo else None
            self.tree.load_project(project)
            self.status_var.set(
                f"{container.name} ({size}): {count_tracks(project.structure)} Spuren, {markers} Marker"
                + (f", {tempo:g} BPM" if tempo else "")
            )
            self.load_btn.configure(state="normal")
            self.convert_btn.configure(state="normal")

        self.parent.after(0, update_ui)

    def _open_in_converter(self):
        self.app.open_converter_for_project(self.path_var.get().strip())
