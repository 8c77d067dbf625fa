"""File and path utility functions."""

from pathlib import Path

from reaperconverter.core.constants import DAWPROJECT_EXTENSION, PROJECT_EXTENSIONS


def format_size(size_bytes: int | float) -> str:
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


def is_reaper_project(path: Path) -> bool:
    return path.suffix.lower() in PROJECT_EXTENSIONS


def is_dawproject(path: Path) -> bool:
    return path.suffix.lower() == DAWPROJECT_EXTENSION
