"""Mapping between nested folder tracks and REAPER's flat track list.

REAPER stores tracks in one list. ``ISBUS <type> <direction>`` marks where a
folder starts (type 1, direction +1) and where one or more folders end
(type 2, negative direction).
"""

from __future__ import annotations

from dataclasses import dataclass

from reaperconverter.core.constants import (
    STRUCTURE_FOLDER_END,
    STRUCTURE_FOLDER_START,
    STRUCTURE_PLAIN,
)
from reaperconverter.core.errors import MalformedHierarchy
from reaperconverter.core.models import ContentType, MixerRole, Track


@dataclass
class TrackInfo:
    """One entry of the flat track list."""
    index: int = 0
    folder: Track | None = None
    track: Track | None = None
    type: int = STRUCTURE_PLAIN
    direction: int = 0

    @property
    def name(self) -> str:
        source = self.folder or self.track
        return source.name if source else ""


def find_mix_bus(folder: Track) -> Track | None:
    """The child track that carries the folder's own mixer channel."""
    for child in folder.tracks:
        if not child.tracks and child.channel is not None and child.channel.role == MixerRole.MASTER:
            return child
    return None


def flatten_tracks(tracks: list[Track]) -> list[TrackInfo]:
    """Flatten a track tree into REAPER's track order."""
    infos: list[TrackInfo] = []
    _flatten(tracks, infos, top_level=True)
    for index, info in enumerate(infos):
        info.index = index
    return infos


def _flatten(tracks: list[Track], infos: list[TrackInfo], top_level: bool):
    start = len(infos)
    for track in tracks:
        if track.is_folder:
            info = TrackInfo(folder=track)
            infos.append(info)
            children = list(track.tracks)
            mix_bus = find_mix_bus(track)
            if mix_bus is not None:
                info.track = mix_bus
                children.remove(mix_bus)
            if not children:
                info.type = STRUCTURE_FOLDER_END
                continue
            info.type = STRUCTURE_FOLDER_START
            info.direction = 1
            _flatten(children, infos, top_level=False)
        else:
            infos.append(TrackInfo(track=track))

    if not top_level and len(infos) > start:
        last = infos[-1]
        last.direction -= 1
        last.type = STRUCTURE_FOLDER_END


class FolderBuilder:
    """Rebuilds the folder tree while reading REAPER tracks in order."""

    def __init__(self, structure: list[Track]):
        self.current = structure
        self.stack: list[list[Track]] = []

    def add(self, track: Track, structure_type: int = STRUCTURE_PLAIN, direction: int = 0):
        if structure_type == STRUCTURE_FOLDER_START:
            if track.channel is not None:
                track.channel.role = MixerRole.MASTER
            folder = Track(
                name=track.name,
                color=track.color,
                comment=track.comment,
                content_types=[ContentType.TRACKS],
            )
            track.name = f"{track.name} Master"
            self.current.append(folder)
            self.stack.append(self.current)
            self.current = folder.tracks
            self.current.append(track)
            return

        self.current.append(track)
        if structure_type == STRUCTURE_FOLDER_END:
            for _ in range(abs(direction)):
                if not self.stack:
                    raise MalformedHierarchy("Folder end without matching folder start", track.name)
                self.current = self.stack.pop()

    @property
    def depth(self) -> int:
        return len(self.stack)


def unflatten_tracks(entries: list[tuple[Track, int, int]]) -> list[Track]:
    """Rebuild a tree from (track, type, direction) tuples."""
    structure: list[Track] = []
    builder = FolderBuilder(structure)
    for track, structure_type, direction in entries:
        builder.add(track, structure_type, direction)
    return structure
