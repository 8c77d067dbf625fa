"""Default paths, application constants and persisted user settings."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

APP_NAME = "ReaperConverter"
APP_VERSION = "1.0.0"
WINDOW_WIDTH = 900
WINDOW_HEIGHT = 650
WINDOW_MIN_WIDTH = 700
WINDOW_MIN_HEIGHT = 500

DEFAULT_SOURCE_PATH = Path.home()
DEFAULT_OUTPUT_PATH = Path.home()
SETTINGS_FILE = Path.home() / ".reaperconverter.json"

# Codec constants
TICKS_PER_QUARTER_NOTE = 960
BASE64_LINE_LENGTH = 128

DESTINATION_REAPER = "reaper"
DESTINATION_DAWPROJECT = "dawproject"


@dataclass
class ConverterSettings:
    source_path: str = str(DEFAULT_SOURCE_PATH)
    output_path: str = str(DEFAULT_OUTPUT_PATH)
    destination: str = DESTINATION_DAWPROJECT
    do_not_compress_audio: bool = False
    lenient_midi: bool = False


def load_settings(path: Path = SETTINGS_FILE) -> ConverterSettings:
    """Load settings, falling back to defaults for missing or broken files."""
    if not path.exists():
        return ConverterSettings()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read settings from %s: %s", path, e)
        return ConverterSettings()

    known = {f.name for f in fields(ConverterSettings)}
    return ConverterSettings(**{k: v for k, v in data.items() if k in known})


def save_settings(settings: ConverterSettings, path: Path = SETTINGS_FILE):
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(settings), f, indent=2)
    except OSError as e:
        logger.warning("Could not write settings to %s: %s", path, e)
