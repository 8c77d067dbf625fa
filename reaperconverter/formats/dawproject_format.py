"""DAWproject container: a zip archive with project.xml, metadata.xml and media."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

from reaperconverter.core.context import ConversionContext
from reaperconverter.core.errors import FormatError
from reaperconverter.core.models import MetaData, Project
from reaperconverter.formats.dawproject_xml import (
    metadata_from_xml,
    metadata_to_xml,
    project_from_xml,
    project_to_xml,
    to_xml_bytes,
)
from reaperconverter.formats.media_files import MediaFiles, ZipMediaFiles

logger = logging.getLogger(__name__)

PROJECT_FILE = "project.xml"
METADATA_FILE = "metadata.xml"


@dataclass
class DawProjectContainer:
    """A project together with its metadata and media, independent of the file format."""
    name: str
    project: Project
    metadata: MetaData = field(default_factory=MetaData)
    media: MediaFiles = field(default_factory=MediaFiles)


def load_dawproject(path: Path) -> DawProjectContainer:
    """Read a .dawproject file."""
    path = Path(path)
    try:
        with zipfile.ZipFile(path) as archive:
            names = set(archive.namelist())
            if PROJECT_FILE not in names:
                raise FormatError(f"{PROJECT_FILE} not found in {path.name}")
            project_root = ET.fromstring(archive.read(PROJECT_FILE))
            metadata_root = ET.fromstring(archive.read(METADATA_FILE)) if METADATA_FILE in names else None
    except zipfile.BadZipFile as e:
        raise FormatError(f"Not a DAWproject file: {e}", path.name) from e
    except ET.ParseError as e:
        raise FormatError(f"Invalid XML: {e}", path.name) from e

    project = project_from_xml(project_root)
    metadata = metadata_from_xml(metadata_root) if metadata_root is not None else MetaData()
    return DawProjectContainer(path.stem, project, metadata, ZipMediaFiles(path))


def save_dawproject(container: DawProjectContainer, path: Path, context: ConversionContext | None = None) -> Path:
    """Write a .dawproject file with all media of the container."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(PROJECT_FILE, to_xml_bytes(project_to_xml(container.project)))
        archive.writestr(METADATA_FILE, to_xml_bytes(metadata_to_xml(container.metadata)))
        for media_id in container.media.ids():
            if context is not None:
                context.check_cancelled()
            logger.info("Storing %s", media_id)
            try:
                archive.writestr(media_id, container.media.read(media_id))
            except FileNotFoundError as e:
                logger.error("Could not store media file: %s", e)
    return path
