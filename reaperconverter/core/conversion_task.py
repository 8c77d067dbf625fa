"""One conversion run from a source file into an output folder."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from reaperconverter.core.context import ConversionContext
from reaperconverter.core.errors import ConversionCancelled, ConversionError, UnsupportedFormat
from reaperconverter.formats.dawproject_format import DawProjectContainer, load_dawproject, save_dawproject
from reaperconverter.formats.reaper_destination import write_reaper_project
from reaperconverter.formats.reaper_source import read_reaper_project
from reaperconverter.utils.config import DESTINATION_DAWPROJECT, DESTINATION_REAPER
from reaperconverter.utils.file_utils import is_dawproject, is_reaper_project

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    source: Path
    output: Path | None = None
    success: bool = False
    cancelled: bool = False
    error: str | None = None
    duration: float = 0.0

    def to_dict(self) -> dict:
        return {
            "source": str(self.source),
            "output": str(self.output) if self.output else None,
            "success": self.success,
            "cancelled": self.cancelled,
            "error": self.error,
            "duration": round(self.duration, 3),
        }


def detect_destination(source: Path) -> str:
    """The format a source file is converted into."""
    if is_reaper_project(source):
        return DESTINATION_DAWPROJECT
    if is_dawproject(source):
        return DESTINATION_REAPER
    raise UnsupportedFormat("Unknown project type", source.name)


class ConversionTask:
    """Converts a REAPER project into a DAWproject or the other way round."""

    def __init__(
        self,
        source: Path,
        output_dir: Path,
        destination: str | None = None,
        context: ConversionContext | None = None,
    ):
        self.source = Path(source)
        self.output_dir = Path(output_dir)
        self.destination = destination
        self.context = context or ConversionContext()

    def run(self) -> ConversionResult:
        result = ConversionResult(self.source)
        start = time.perf_counter()
        try:
            result.output = self._convert()
            result.success = True
            logger.info("Conversion finished.")
        except ConversionCancelled:
            result.cancelled = True
            result.error = "Canceled."
            logger.info("Canceled.")
        except (ConversionError, OSError) as e:
            result.error = str(e)
            logger.error("Conversion of %s failed: %s", self.source.name, e)
        result.duration = time.perf_counter() - start
        return result

    def _convert(self) -> Path:
        if not self.source.is_file():
            raise FileNotFoundError(f"Source file not found: {self.source}")

        destination = detect_destination(self.source)
        if self.destination is not None and self.destination != destination:
            raise UnsupportedFormat(f"Cannot convert into {self.destination}", self.source.name)

        logger.info("Reading %s", self.source)
        container = self._read()
        self.context.check_cancelled()

        if destination == DESTINATION_DAWPROJECT:
            target = self.output_dir / f"{container.name}.dawproject"
            logger.info("Writing %s", target)
            return save_dawproject(container, target, self.context)

        logger.info("Writing REAPER project to %s", self.output_dir)
        return write_reaper_project(container, self.output_dir, self.context)

    def _read(self) -> DawProjectContainer:
        if is_reaper_project(self.source):
            return read_reaper_project(self.source, self.context)
        return load_dawproject(self.source)
