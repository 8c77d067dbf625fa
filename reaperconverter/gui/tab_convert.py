"""Convert tab - converts one project between REAPER and DAWproject."""

import logging
import threading
from pathlib import Path
from tkinter import filedialog, messagebox

import customtkinter as ctk

from reaperconverter.core.context import ConversionContext
from reaperconverter.core.conversion_task import ConversionResult, ConversionTask, detect_destination
from reaperconverter.core.errors import UnsupportedFormat
from reaperconverter.gui import theme
from reaperconverter.utils.config import DESTINATION_REAPER, ConverterSettings, save_settings
from reaperconverter.utils.log_setup import CallbackHandler

logger = logging.getLogger(__name__)

FILE_TYPES = [
    ("Projekte", "*.rpp *.rpp-bak *.dawproject"),
    ("REAPER", "*.rpp *.rpp-bak"),
    ("DAWproject", "*.dawproject"),
]


class ConvertTab:
    """Tab with source file, output folder, options and a log view."""

    def __init__(self, parent: ctk.CTkFrame, settings: ConverterSettings):
        self.parent = parent
        self.settings = settings
        self._cancel_event = threading.Event()
        self._worker: threading.Thread | None = None
        self._build_ui()

        self._log_handler = CallbackHandler(self._log_threadsafe)
        logging.getLogger("reaperconverter").addHandler(self._log_handler)

    def _build_ui(self):
        # Source file
        source_frame = ctk.CTkFrame(self.parent, fg_color="transparent")
        source_frame.pack(fill="x", padx=15, pady=(15, 5))

        ctk.CTkLabel(
            source_frame,
            text="Quelldatei:",
            width=90,
            anchor="w",
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_BODY),
        ).pack(side="left", padx=(0, 10))

        self.source_var = ctk.StringVar(value=self.settings.source_path)
        ctk.CTkEntry(
            source_frame,
            textvariable=self.source_var,
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_BODY),
            fg_color=theme.BG_TERTIARY,
        ).pack(side="left", fill="x", expand=True, padx=(0, 10))

        ctk.CTkButton(
            source_frame,
            text="Datei...",
            width=100,
            command=self._browse_source,
            fg_color=theme.BG_TERTIARY,
            hover_color=theme.BG_HOVER,
        ).pack(side="left")

        # Output folder
        output_frame = ctk.CTkFrame(self.parent, fg_color="transparent")
        output_frame.pack(fill="x", padx=15, pady=5)

        ctk.CTkLabel(
            output_frame,
            text="Zielordner:",
            width=90,
            anchor="w",
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_BODY),
        ).pack(side="left", padx=(0, 10))

        self.output_var = ctk.StringVar(value=self.settings.output_path)
        ctk.CTkEntry(
            output_frame,
            textvariable=self.output_var,
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_BODY),
            fg_color=theme.BG_TERTIARY,
        ).pack(side="left", fill="x", expand=True, padx=(0, 10))

        ctk.CTkButton(
            output_frame,
            text="Ordner...",
            width=100,
            command=self._browse_output,
            fg_color=theme.BG_TERTIARY,
            hover_color=theme.BG_HOVER,
        ).pack(side="left")

        # Options
        options_frame = ctk.CTkFrame(self.parent, fg_color="transparent")
        options_frame.pack(fill="x", padx=15, pady=5)

        self.external_audio_var = ctk.BooleanVar(value=self.settings.do_not_compress_audio)
        ctk.CTkCheckBox(
            options_frame,
            text="Audiodateien nicht ins DAWproject packen",
            variable=self.external_audio_var,
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_BODY),
            fg_color=theme.ACCENT_DARK,
            hover_color=theme.ACCENT,
        ).pack(side="left", padx=(0, 20))

        self.lenient_midi_var = ctk.BooleanVar(value=self.settings.lenient_midi)
        ctk.CTkCheckBox(
            options_frame,
            text="Fehlerhafte MIDI-Daten ueberspringen",
            variable=self.lenient_midi_var,
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_BODY),
            fg_color=theme.ACCENT_DARK,
            hover_color=theme.ACCENT,
        ).pack(side="left")

        # Action buttons
        btn_frame = ctk.CTkFrame(self.parent, fg_color="transparent")
        btn_frame.pack(fill="x", padx=15, pady=(10, 5))

        self.convert_btn = ctk.CTkButton(
            btn_frame,
            text="Konvertieren",
            command=self._convert,
            fg_color=theme.ACCENT_DARK,
            hover_color=theme.ACCENT,
            width=140,
        )
        self.convert_btn.pack(side="left", padx=(0, 10))

        self.cancel_btn = ctk.CTkButton(
            btn_frame,
            text="Abbrechen",
            command=self._cancel,
            fg_color=theme.BG_TERTIARY,
            hover_color=theme.ACCENT_WARNING,
            width=140,
            state="disabled",
        )
        self.cancel_btn.pack(side="left")

        # Status
        self.status_var = ctk.StringVar(value="Projekt auswaehlen und 'Konvertieren' klicken")
        ctk.CTkLabel(
            self.parent,
            textvariable=self.status_var,
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_SMALL),
            text_color=theme.TEXT_MUTED,
        ).pack(fill="x", padx=15, pady=(5, 5))

        # Log area
        self.log_text = ctk.CTkTextbox(
            self.parent,
            font=(theme.FONT_MONO, theme.FONT_SIZE_MONO),
            fg_color=theme.BG_PRIMARY,
            text_color=theme.TEXT_SECONDARY,
        )
        self.log_text.pack(fill="both", expand=True, padx=15, pady=(5, 15))
        for level, color in theme.LOG_COLORS.items():
            self.log_text.tag_config(level, foreground=color)

    def _log(self, text: str):
        level = text.split(":", 1)[0]
        self.log_text.insert("end", text + "\n", level if level in theme.LOG_COLORS else None)
        self.log_text.see("end")

    def _log_threadsafe(self, text: str):
        self.parent.after(0, lambda: self._log(text))

    def _clear_log(self):
        self.log_text.delete("1.0", "end")

    def _browse_source(self):
        current = Path(self.source_var.get().strip() or self.settings.source_path)
        filename = filedialog.askopenfilename(
            title="Projekt zum Konvertieren auswaehlen",
            initialdir=str(current if current.is_dir() else current.parent),
            filetypes=FILE_TYPES,
        )
        if filename:
            self.source_var.set(filename)

    def _browse_output(self):
        folder = filedialog.askdirectory(
            title="Zielordner auswaehlen",
            initialdir=self.output_var.get().strip() or self.settings.output_path,
        )
        if folder:
            self.output_var.set(folder)

    def _convert(self):
        if self._worker is not None and self._worker.is_alive():
            return

        source = self.source_var.get().strip()
        output = self.output_var.get().strip()
        if not source or not output:
            messagebox.showwarning("Fehler", "Bitte Quelldatei und Zielordner auswaehlen!")
            return

        source_path = Path(source)
        if not source_path.is_file():
            messagebox.showerror("Fehler", f"Datei existiert nicht:\n{source}")
            return
        try:
            destination = detect_destination(source_path)
        except UnsupportedFormat:
            messagebox.showerror("Fehler", "Nur .rpp, .rpp-bak und .dawproject Dateien werden unterstuetzt.")
            return

        self.settings.source_path = str(source_path.parent)
        self.settings.output_path = output
        self.settings.destination = destination
        self.settings.do_not_compress_audio = self.external_audio_var.get()
        self.settings.lenient_midi = self.lenient_midi_var.get()
        save_settings(self.settings)

        self._clear_log()
        self._cancel_event.clear()
        self.convert_btn.configure(state="disabled")
        self.cancel_btn.configure(state="normal")
        target = "REAPER" if destination == DESTINATION_REAPER else "DAWproject"
        self.status_var.set(f"Konvertiere nach {target}...")

        context = ConversionContext(
            is_cancelled=self._cancel_event.is_set,
            lenient_midi=self.settings.lenient_midi,
            do_not_compress_audio=self.settings.do_not_compress_audio,
        )
        task = ConversionTask(source_path, Path(output), destination, context)
        self._worker = threading.Thread(target=self._run_conversion, args=(task,), daemon=True)
        self._worker.start()

    def _run_conversion(self, task: ConversionTask):
        result = task.run()
        self.parent.after(0, lambda: self._finish(result))

    def _finish(self, result: ConversionResult):
        self.convert_btn.configure(state="normal")
        self.cancel_btn.configure(state="disabled")
        if result.success:
            self.status_var.set(f"Fertig! Gespeichert unter {result.output} ({result.duration:.1f} s)")
        elif result.cancelled:
            self.status_var.set("Abgebrochen.")
        else:
            self.status_var.set(f"Fehler: {result.error}")

    def _cancel(self):
        self._cancel_event.set()
        self.cancel_btn.configure(state="disabled")
        self.status_var.set("Breche ab...")

    def close(self):
        logging.getLogger("reaperconverter").removeHandler(self._log_handler)
