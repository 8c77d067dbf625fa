"""ReaperConverter main window: convert tab and project overview."""

import ctypes
import logging

import customtkinter as ctk

from reaperconverter.gui import theme
from reaperconverter.gui.tab_convert import ConvertTab
from reaperconverter.gui.tab_project import ProjectTab
from reaperconverter.utils.config import (
    APP_NAME,
    APP_VERSION,
    WINDOW_HEIGHT,
    WINDOW_MIN_HEIGHT,
    WINDOW_MIN_WIDTH,
    WINDOW_WIDTH,
    load_settings,
)

logger = logging.getLogger(__name__)


class ReaperConverterApp:
    """Window holding the convert and project tabs."""

    def __init__(self):
        self._set_dpi_awareness()

        ctk.set_appearance_mode("dark")
        ctk.set_default_color_theme("dark-blue")

        self.settings = load_settings()

        self.root = ctk.CTk()
        self.root.title(f"{APP_NAME} v{APP_VERSION}")
        self.root.geometry(f"{WINDOW_WIDTH}x{WINDOW_HEIGHT}")
        self.root.minsize(WINDOW_MIN_WIDTH, WINDOW_MIN_HEIGHT)
        self.root.configure(fg_color=theme.BG_PRIMARY)
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        self._build_ui()

    def _set_dpi_awareness(self):
        # Only available on Windows
        try:
            ctypes.windll.shcore.SetProcessDpiAwareness(2)
        except (AttributeError, OSError):
            try:
                ctypes.windll.user32.SetProcessDPIAware()
            except (AttributeError, OSError):
                logger.debug("DPI awareness not available")

    def _build_ui(self):
        # Title bar
        title_frame = ctk.CTkFrame(self.root, fg_color=theme.BG_PRIMARY)
        title_frame.pack(fill="x", padx=20, pady=(15, 5))

        ctk.CTkLabel(
            title_frame,
            text=APP_NAME,
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_TITLE, "bold"),
            text_color=theme.ACCENT,
        ).pack(side="left")

        ctk.CTkLabel(
            title_frame,
            text=f"v{APP_VERSION}  REAPER <-> DAWproject",
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_SMALL),
            text_color=theme.TEXT_MUTED,
        ).pack(side="left", padx=(10, 0), pady=(8, 0))

        self.tabview = ctk.CTkTabview(
            self.root,
            fg_color=theme.BG_SECONDARY,
            segmented_button_fg_color=theme.BG_TERTIARY,
            segmented_button_selected_color=theme.ACCENT_DARK,
            segmented_button_selected_hover_color=theme.ACCENT,
            segmented_button_unselected_color=theme.BG_TERTIARY,
            segmented_button_unselected_hover_color=theme.BG_HOVER,
        )
        self.tabview.pack(fill="both", expand=True, padx=15, pady=(5, 15))

        tab_convert = self.tabview.add("Konvertieren")
        tab_project = self.tabview.add("Projekt")

        self.convert_tab = ConvertTab(tab_convert, self.settings)
        self.project_tab = ProjectTab(tab_project, self, self.settings)

    def open_converter_for_project(self, path: str):
        """Switch to the convert tab with the given source file."""
        self.tabview.set("Konvertieren")
        self.convert_tab.source_var.set(path)

    def _on_close(self):
        self.convert_tab.close()
        self.root.destroy()

    def run(self):
        self.root.mainloop()
