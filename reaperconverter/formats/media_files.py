"""Access to the files a project references (audio samples, plugin states)."""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)


class MediaFiles:
    """Maps a media ID (path inside the project) to its content."""

    def __init__(self):
        self._files: dict[str, Path] = {}
        self._data: dict[str, bytes] = {}

    def add(self, media_id: str, path: Path):
        self._files[media_id] = Path(path)

    def add_data(self, media_id: str, data: bytes):
        self._data[media_id] = data

    def all(self) -> dict[str, Path]:
        return dict(self._files)

    def ids(self) -> list[str]:
        return list(self._data) + [i for i in self._files if i not in self._data]

    def stream(self, media_id: str) -> BinaryIO:
        if media_id in self._data:
            return io.BytesIO(self._data[media_id])
        if media_id in self._files:
            return open(self._files[media_id], "rb")
        raise FileNotFoundError(f"Unknown media file: {media_id}")

    def read(self, media_id: str) -> bytes:
        with self.stream(media_id) as f:
            return f.read()


class LocalMediaFiles(MediaFiles):
    """Media of a REAPER project: generated plugin states and audio files on disk."""


class ZipMediaFiles(MediaFiles):
    """Media of a DAWproject container.

    A file next to the container takes precedence over the archive entry,
    which is how externally referenced samples are resolved.
    """

    def __init__(self, container_path: Path):
        super().__init__()
        self.container_path = Path(container_path)

    def stream(self, media_id: str) -> BinaryIO:
        if media_id in self._data or media_id in self._files:
            return super().stream(media_id)

        sibling = self.container_path.parent / media_id
        if sibling.is_file():
            return open(sibling, "rb")

        with zipfile.ZipFile(self.container_path) as archive:
            try:
                return io.BytesIO(archive.read(media_id))
            except KeyError as e:
                raise FileNotFoundError(f"{media_id} not found in {self.container_path.name}") from e

    def ids(self) -> list[str]:
        with zipfile.ZipFile(self.container_path) as archive:
            names = [n for n in archive.namelist() if not n.endswith(".xml")]
        return names + [i for i in super().ids() if i not in names]
