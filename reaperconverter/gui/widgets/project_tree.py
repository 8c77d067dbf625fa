"""Project tree view widget for displaying the track/device hierarchy."""

import customtkinter as ctk

from reaperconverter.core.models import ContentType, MixerRole, Project, Track
from reaperconverter.gui import theme

INDENT = 20


def track_kind(track: Track) -> str:
    if track.is_folder:
        return "folder"
    if track.channel is not None and track.channel.role == MixerRole.MASTER:
        return "master"
    if track.channel is not None and track.channel.role == MixerRole.EFFECT_TRACK:
        return "effect"
    if ContentType.NOTES in track.content_types and ContentType.AUDIO not in track.content_types:
        return "notes"
    return "audio"


class ProjectTree(ctk.CTkScrollableFrame):
    """Scrollable tree showing tracks, folders and their devices."""

    def __init__(self, parent, **kwargs):
        super().__init__(parent, fg_color=theme.BG_PRIMARY, **kwargs)
        self._items: list[ctk.CTkFrame] = []

    def load_project(self, project: Project):
        self._clear()
        for track in project.structure:
            self._add_track(track, 0)

    def _add_track(self, track: Track, level: int):
        track_frame = ctk.CTkFrame(self, fg_color=theme.BG_TERTIARY, corner_radius=6)
        track_frame.pack(fill="x", pady=(4, 0), padx=(4 + level * INDENT, 4))

        kind = track_kind(track)
        header = ctk.CTkFrame(track_frame, fg_color="transparent")
        header.pack(fill="x", padx=8, pady=6)

        ctk.CTkLabel(
            header,
            text=f"[{kind.upper()}]",
            font=(theme.FONT_MONO, theme.FONT_SIZE_SMALL),
            text_color=theme.TRACK_COLORS.get(kind, theme.TEXT_MUTED),
            width=80,
            anchor="w",
        ).pack(side="left")

        ctk.CTkLabel(
            header,
            text=track.name,
            font=(theme.FONT_FAMILY, theme.FONT_SIZE_BODY, "bold"),
            text_color=theme.TEXT_PRIMARY,
            anchor="w",
        ).pack(side="left", fill="x", expand=True)

        devices = track.channel.devices if track.channel is not None else []
        if devices:
            ctk.CTkLabel(
                header,
                text=f"{len(devices)} Plugin{'s' if len(devices) != 1 else ''}",
                font=(theme.FONT_FAMILY, theme.FONT_SIZE_SMALL),
                text_color=theme.TEXT_MUTED,
            ).pack(side="right")

        for device in devices:
            device_frame = ctk.CTkFrame(track_frame, fg_color="transparent")
            device_frame.pack(fill="x", padx=(30, 8), pady=2)

            enabled = device.enabled is None or device.enabled.value is not False
            ctk.CTkLabel(
                device_frame,
                text="●",
                font=(theme.FONT_FAMILY, 8),
                text_color=theme.ACCENT_SUCCESS if enabled else theme.TEXT_DISABLED,
                width=15,
            ).pack(side="left")

            ctk.CTkLabel(
                device_frame,
                text=device.device_name or device.name or "Unbekanntes Plugin",
                font=(theme.FONT_FAMILY, theme.FONT_SIZE_SMALL),
                text_color=theme.TEXT_SECONDARY,
                anchor="w",
            ).pack(side="left", fill="x", expand=True)

            ctk.CTkLabel(
                device_frame,
                text=device.format.value,
                font=(theme.FONT_MONO, theme.FONT_SIZE_SMALL - 1),
                text_color=theme.ACCENT_INFO,
            ).pack(side="right")

        self._items.append(track_frame)
        for child in track.tracks:
            self._add_track(child, level + 1)

    def _clear(self):
        for item in self._items:
            item.destroy()
        self._items.clear()
