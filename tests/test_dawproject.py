"""Tests for the DAWproject XML marshalling and the zip container."""

import zipfile
import xml.etree.ElementTree as ET

import pytest

from reaperconverter.core.context import ConversionContext
from reaperconverter.core.errors import ConversionCancelled, FormatError
from reaperconverter.core.models import (
    Application,
    Arrangement,
    AutomationTarget,
    BoolParameter,
    Channel,
    Clip,
    Clips,
    ContentType,
    Device,
    DeviceFormat,
    FileReference,
    Interpolation,
    Lanes,
    Marker,
    Markers,
    MetaData,
    MixerRole,
    Note,
    Notes,
    Points,
    Project,
    RealParameter,
    RealPoint,
    Send,
    SendType,
    TimeSignatureParameter,
    TimeUnit,
    Track,
    Transport,
    Unit,
)
from reaperconverter.formats.dawproject_format import DawProjectContainer, load_dawproject, save_dawproject
from reaperconverter.formats.dawproject_xml import (
    metadata_from_xml,
    metadata_to_xml,
    project_from_xml,
    project_to_xml,
    to_xml_bytes,
)
from reaperconverter.formats.media_files import MediaFiles


def _project() -> Project:
    """A small project with a master, an effect track with a send and automation."""
    master = Track(name="Master", channel=Channel(role=MixerRole.MASTER), content_types=[ContentType.AUDIO])
    reverb = Track(name="Reverb", channel=Channel(role=MixerRole.EFFECT_TRACK), content_types=[ContentType.AUDIO])
    volume = RealParameter(0.8, Unit.LINEAR, 0.0, 1.0, "Volume")
    synth = Track(
        name="Synth",
        color="#ff8000",
        content_types=[ContentType.NOTES],
        channel=Channel(
            volume=volume,
            pan=RealParameter(0.5, Unit.NORMALIZED, 0.0, 1.0, "Pan"),
            mute=BoolParameter(False, "Mute"),
            devices=[Device(
                format=DeviceFormat.VST3,
                name="Surge XT",
                device_id="ABCDEF01-2345-6789-ABCD-EF0123456789",
                device_name="Surge XT",
                device_vendor="Surge Synth Team",
                enabled=BoolParameter(True, "On/Off"),
                state=FileReference("plugins/surge.vstpreset"),
            )],
        ),
    )
    synth.channel.sends.append(Send(
        volume=RealParameter(0.5, Unit.LINEAR, 0.0, 1.0, "Volume"),
        type=SendType.PRE,
        name="Send",
        destination=reverb.channel,
    ))

    lanes = Lanes(track=synth)
    lanes.lanes.append(Points(
        target=AutomationTarget(parameter=volume),
        unit=Unit.LINEAR,
        points=[RealPoint(0.0, 0.5, Interpolation.LINEAR), RealPoint(2.0, 1.0, Interpolation.LINEAR)],
    ))
    lanes.lanes.append(Clips(clips=[Clip(
        time=4.0,
        duration=4.0,
        name="Chords",
        content=Notes(notes=[Note(time=0.0, duration=1.0, key=64, velocity=0.75)]),
    )]))

    return Project(
        application=Application("Test", "1.0"),
        transport=Transport(RealParameter(100.0, Unit.BPM, 1.0, 960.0, "Tempo"), TimeSignatureParameter(3, 4)),
        structure=[master, synth, reverb],
        arrangement=_arrangement(lanes),
    )


def _arrangement(track_lanes: Lanes):
    return Arrangement(
        lanes=Lanes(time_unit=TimeUnit.BEATS, lanes=[track_lanes]),
        markers=Markers(markers=[Marker(8.0, "Chorus", "#00ff00")]),
    )


def _round_trip(project: Project) -> Project:
    return project_from_xml(ET.fromstring(to_xml_bytes(project_to_xml(project))))


def test_structure_round_trip():
    """Tracks, channels and devices survive the XML."""
    project = _round_trip(_project())
    assert [t.name for t in project.structure] == ["Master", "Synth", "Reverb"]
    assert project.application.name == "Test"
    assert project.transport.tempo.value == 100.0
    assert project.transport.time_signature.numerator == 3

    synth = project.structure[1]
    assert synth.color == "#ff8000"
    assert synth.content_types == [ContentType.NOTES]
    assert synth.channel.pan.unit == Unit.NORMALIZED
    device = synth.channel.devices[0]
    assert device.format == DeviceFormat.VST3
    assert device.device_vendor == "Surge Synth Team"
    assert device.state.path == "plugins/surge.vstpreset"


def test_references_are_resolved():
    """Send destinations, lane tracks and automation targets point to the read objects."""
    project = _round_trip(_project())
    _, synth, reverb = project.structure

    send = synth.channel.sends[0]
    assert send.destination is reverb.channel
    assert send.type == SendType.PRE

    track_lanes = project.arrangement.lanes.lanes[0]
    assert track_lanes.track is synth
    points = track_lanes.lanes[0]
    assert points.target.parameter is synth.channel.volume
    assert [(p.time, p.value) for p in points.points] == [(0.0, 0.5), (2.0, 1.0)]


def test_clips_and_markers():
    """Clip attributes, notes and markers are kept."""
    project = _round_trip(_project())
    assert project.arrangement.lanes.time_unit == TimeUnit.BEATS
    clip = project.arrangement.lanes.lanes[0].lanes[1].clips[0]
    assert (clip.time, clip.duration, clip.name) == (4.0, 4.0, "Chords")
    assert clip.content.notes[0].key == 64
    assert clip.content.notes[0].velocity == 0.75

    marker = project.arrangement.markers.markers[0]
    assert (marker.time, marker.name, marker.color) == (8.0, "Chorus", "#00ff00")


def test_ids_are_unique():
    """Every referenced object gets its own id."""
    root = project_to_xml(_project())
    ids = [element.get("id") for element in root.iter() if element.get("id")]
    assert len(ids) == len(set(ids))


def test_not_a_project():
    """Other root elements are rejected."""
    with pytest.raises(FormatError):
        project_from_xml(ET.Element("Song"))


def test_metadata_round_trip():
    """Metadata fields become child elements."""
    metadata = MetaData(title="Song", artist="Band", comment="Line 1\r\nLine 2")
    decoded = metadata_from_xml(ET.fromstring(to_xml_bytes(metadata_to_xml(metadata))))
    assert decoded.title == "Song"
    assert decoded.artist == "Band"
    assert decoded.album is None


def test_container_save_and_load(tmp_path):
    """A container is written as zip with project, metadata and media."""
    media = MediaFiles()
    media.add_data("plugins/surge.vstpreset", b"VST3 preset data")
    container = DawProjectContainer("Song", _project(), MetaData(title="Song"), media)

    path = save_dawproject(container, tmp_path / "Song.dawproject")
    with zipfile.ZipFile(path) as archive:
        assert {"project.xml", "metadata.xml", "plugins/surge.vstpreset"} <= set(archive.namelist())

    loaded = load_dawproject(path)
    assert loaded.name == "Song"
    assert loaded.metadata.title == "Song"
    assert loaded.media.read("plugins/surge.vstpreset") == b"VST3 preset data"
    assert "plugins/surge.vstpreset" in loaded.media.ids()


def test_sibling_file_takes_precedence(tmp_path):
    """External media next to the container is read from disk."""
    media = MediaFiles()
    media.add_data("samples/kick.wav", b"zipped")
    path = save_dawproject(DawProjectContainer("Song", _project(), MetaData(), media), tmp_path / "Song.dawproject")
    (tmp_path / "samples").mkdir()
    (tmp_path / "samples" / "kick.wav").write_bytes(b"on disk")

    assert load_dawproject(path).media.read("samples/kick.wav") == b"on disk"


def test_load_invalid_file(tmp_path):
    """Files that are no zip archive raise a format error."""
    path = tmp_path / "broken.dawproject"
    path.write_bytes(b"not a zip")
    with pytest.raises(FormatError):
        load_dawproject(path)


def test_save_can_be_cancelled(tmp_path):
    """Cancellation is checked before each media file."""
    media = MediaFiles()
    media.add_data("plugins/a.fxp", b"a")
    context = ConversionContext(is_cancelled=lambda: True)
    with pytest.raises(ConversionCancelled):
        save_dawproject(DawProjectContainer("Song", _project(), MetaData(), media), tmp_path / "x.dawproject", context)
