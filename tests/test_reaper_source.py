"""Tests for reading REAPER projects into the DAWproject object graph."""

import logging
import wave

import pytest

from reaperconverter.core.chunk import Node
from reaperconverter.core.context import ConversionContext
from reaperconverter.core.conversions import value_to_db
from reaperconverter.core.models import (
    Audio,
    BoolPoint,
    ContentType,
    DeviceFormat,
    DeviceRole,
    Interpolation,
    Lanes,
    MixerRole,
    Notes,
    Points,
    SendType,
    TimeUnit,
)
from reaperconverter.formats.reaper_source import ReaperReader, read_notes, read_reaper_project
from reaperconverter.presets.base64_lines import add_lines
from reaperconverter.presets.stream import int_le
from reaperconverter.presets.vst_envelope import PresetBlob, encode_envelope

PROJECT = """<REAPER_PROJECT 0.1 "6.33/win64" 1600000000
  AUTHOR "Jane Doe"
  <NOTES 0 2
    |First line
    |Second line
  >
  TEMPO 120 3 4
  MASTER_NCH 6 6
  MASTER_VOLUME 0.5 0 -1 -1 1
  MASTERMUTESOLO 2
  MARKER 1 2 Chorus 0 0
  MARKER 2 4 Intro 1 0
  MARKER 3 6 "" 0 16711680
  <RENDER_METADATA
    TAG ID3:TIT2 "My Song"
    TAG ID3:TCON Rock
  >
  <TRACK
    NAME Drums
    ISBUS 1 1
    VOLPAN 1 0 -1 -1 1
  >
  <TRACK
    NAME Kick
    ISBUS 2 -1
    MUTESOLO 1 0 0
    PEAKCOL 16576
    <ITEM
      POSITION 1
      LENGTH 2
      NAME Beat
      SOFFS 0.5
      <SOURCE MIDI
        HASDATA 1 960 QN
        E 0 90 3c 60
        E 960 80 3c 00
      >
    >
  >
  <TRACK
    NAME Reverb
    AUXRECV 1 1 1 0 0
  >
>
"""


def _read(tmp_path, text: str = PROJECT, context: ConversionContext | None = None):
    path = tmp_path / "Song.rpp"
    path.write_text(text, encoding="utf-8")
    return read_reaper_project(path, context)


def _track_lanes(project, track) -> Lanes:
    return next(lanes for lanes in project.arrangement.lanes.lanes if lanes.track is track)


def test_metadata(tmp_path):
    """Author, notes and render metadata end up in the metadata."""
    container = _read(tmp_path)
    metadata = container.metadata
    assert container.name == "Song"
    assert metadata.artist == "Jane Doe"
    assert metadata.producer == "Jane Doe"
    assert metadata.comment == "First line\r\nSecond line"
    assert metadata.title == "My Song"
    assert metadata.genre == "Rock"
    assert container.project.application.version == "6.33/win64"


def test_transport(tmp_path):
    """TEMPO carries tempo and time signature."""
    transport = _read(tmp_path).project.transport
    assert transport.tempo.value == 120.0
    assert (transport.time_signature.numerator, transport.time_signature.denominator) == (3, 4)


def test_master(tmp_path):
    """The master track comes first."""
    master = _read(tmp_path).project.structure[0]
    assert master.name == "Master"
    assert master.channel.role == MixerRole.MASTER
    assert master.channel.audio_channels == 6
    assert master.channel.volume.value == pytest.approx(value_to_db(0.5, 0))
    assert master.channel.pan.value == pytest.approx(0.5)
    assert master.channel.solo is True
    assert master.channel.mute.value is False


def test_folders(tmp_path):
    """ISBUS rebuilds the folder with its mix bus track."""
    structure = _read(tmp_path).project.structure
    assert [t.name for t in structure] == ["Master", "Drums", "Reverb"]

    folder = structure[1]
    assert folder.content_types == [ContentType.TRACKS]
    assert [t.name for t in folder.tracks] == ["Drums Master", "Kick"]
    assert folder.tracks[0].channel.role == MixerRole.MASTER
    assert folder.tracks[0].channel.volume.value == pytest.approx(value_to_db(1.0, 0))


def test_track_attributes(tmp_path):
    """Mute, color and content type of a MIDI track."""
    kick = _read(tmp_path).project.structure[1].tracks[1]
    assert kick.channel.mute.value is True
    assert kick.color == "#c04000"
    assert kick.content_types == [ContentType.NOTES]


def test_sends(tmp_path):
    """AUXRECV on the receiving track becomes a send of the source track."""
    structure = _read(tmp_path).project.structure
    kick = structure[1].tracks[1]
    reverb = structure[2]

    assert reverb.channel.role == MixerRole.EFFECT_TRACK
    assert len(kick.channel.sends) == 1
    send = kick.channel.sends[0]
    assert send.destination is reverb.channel
    assert send.type == SendType.PRE
    assert send.volume.value == pytest.approx(value_to_db(1.0, 12))
    assert send.enable.value is True


def test_markers(tmp_path):
    """Markers stay in seconds, regions are dropped, empty names use the index."""
    markers = _read(tmp_path).project.arrangement.markers.markers
    assert [(m.time, m.name) for m in markers] == [(2.0, "Chorus"), (6.0, "3")]
    assert markers[0].color is None
    assert markers[1].color == "#0000ff"
    assert _read(tmp_path).project.arrangement.lanes.time_unit == TimeUnit.SECONDS


def test_midi_clip(tmp_path):
    """Items become clips in beats with an inner clip holding the notes."""
    project = _read(tmp_path).project
    kick = project.structure[1].tracks[1]
    clips = next(t for t in _track_lanes(project, kick).lanes if not isinstance(t, Points))
    assert clips.time_unit == TimeUnit.BEATS

    clip = clips.clips[0]
    assert clip.name == "Beat"
    assert clip.time == pytest.approx(2.0)
    assert clip.duration == pytest.approx(4.0)
    assert clip.loop_end is None

    inner = clip.content.clips[0]
    assert inner.time == 0.0
    assert inner.play_start == pytest.approx(1.0)
    notes = inner.content.lanes[0]
    assert isinstance(notes, Notes)
    assert [(n.time, n.duration, n.key) for n in notes.notes] == [(0.0, 1.0, 60)]


def test_looped_item(tmp_path):
    """LOOP 1 limits the inner clip to the source length."""
    text = PROJECT.replace("      NAME Beat\n", "      NAME Beat\n      LOOP 1\n")
    kick = _read(tmp_path, text).project
    clips = next(
        t for t in _track_lanes(kick, kick.structure[1].tracks[1]).lanes if not isinstance(t, Points)
    )
    clip = clips.clips[0]
    assert clip.loop_start == 0.0
    assert clip.loop_end == pytest.approx(1.0)
    assert clip.content.clips[0].duration == pytest.approx(1.0)


def test_tempo_envelope(tmp_path):
    """TEMPOENVEX points become tempo and time signature automation."""
    text = PROJECT.replace(
        "  TEMPO 120 3 4\n",
        "  TEMPO 120 3 4\n  <TEMPOENVEX\n    PT 0 120 0 262147\n    PT 2 60 1\n  >\n",
    )
    arrangement = _read(tmp_path, text).project.arrangement

    tempo = arrangement.tempo_automation
    assert [(p.time, p.value) for p in tempo.points] == [(0.0, 120.0), (2.0, 60.0)]
    assert tempo.points[1].interpolation == Interpolation.LINEAR
    signature = arrangement.time_signature_automation.points[0]
    assert (signature.numerator, signature.denominator) == (3, 4)


def test_track_envelopes(tmp_path):
    """Volume envelopes are interpolated, mute envelopes are boolean."""
    text = PROJECT.replace(
        "    NAME Reverb\n",
        "    NAME Reverb\n    VOLPAN 1 0 -1 -1 1\n    MUTESOLO 0 0 0\n    <VOLENV2\n      ACT 1 -1\n      PT 0 1 0\n      PT 1 0.5 0\n    >\n"
        "    <MUTEENV\n      PT 0 0 1\n      PT 3 1 1\n    >\n",
    )
    project = _read(tmp_path, text).project
    reverb = project.structure[2]
    points = [t for t in _track_lanes(project, reverb).lanes if isinstance(t, Points)]

    volume = next(p for p in points if p.target.parameter is reverb.channel.volume)
    assert [p.value for p in volume.points] == [1.0, 0.5]
    mute = next(p for p in points if p.target.parameter is reverb.channel.mute)
    assert all(isinstance(p, BoolPoint) for p in mute.points)
    assert [p.value for p in mute.points] == [False, True]


MIDI_SOURCE = "      <SOURCE MIDI\n        HASDATA 1 960 QN\n        E 0 90 3c 60\n        E 960 80 3c 00\n      >\n"


def _write_wave(path, seconds: float = 1.0, rate: int = 44100):
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as handle:
        handle.setnchannels(1)
        handle.setsampwidth(2)
        handle.setframerate(rate)
        handle.writeframes(b"\x00\x00" * int(seconds * rate))


def _kick_clips(project):
    kick = project.structure[1].tracks[1]
    return kick, next(t for t in _track_lanes(project, kick).lanes if not isinstance(t, Points))


def test_missing_audio_file(tmp_path, caplog):
    """A missing sample is logged and its clip is dropped."""
    text = PROJECT.replace(MIDI_SOURCE, "      <SOURCE WAVE\n        FILE \"missing.wav\"\n      >\n")
    with caplog.at_level(logging.ERROR, logger="reaperconverter"):
        container = _read(tmp_path, text)
    assert "Audio file not found" in caplog.text

    kick, clips = _kick_clips(container.project)
    assert clips.clips == []
    assert kick.content_types == [ContentType.NOTES, ContentType.AUDIO]
    assert container.media.ids() == []


def test_unreadable_audio_file(tmp_path, caplog):
    """A sample soundfile cannot open skips the clip, not the project."""
    (tmp_path / "broken.wav").write_bytes(b"this is not audio" * 8)
    text = PROJECT.replace(MIDI_SOURCE, "      <SOURCE WAVE\n        FILE \"broken.wav\"\n      >\n")
    with caplog.at_level(logging.ERROR, logger="reaperconverter"):
        container = _read(tmp_path, text)
    assert "Skipping clip Beat" in caplog.text

    project = container.project
    _, clips = _kick_clips(project)
    assert clips.clips == []
    assert container.media.ids() == []
    assert [track.name for track in project.structure[1].tracks] == ["Drums Master", "Kick"]


def test_embedded_audio_file(tmp_path):
    """Found samples are measured and stored in the container."""
    _write_wave(tmp_path / "loop.wav", seconds=1.0)
    text = PROJECT.replace(MIDI_SOURCE, "      <SOURCE WAVE\n        FILE \"loop.wav\"\n      >\n")
    container = _read(tmp_path, text)

    kick, clips = _kick_clips(container.project)
    audio = clips.clips[0].content.clips[0].content
    assert isinstance(audio, Audio)
    assert audio.file.path == "samples/loop.wav"
    assert (audio.channels, audio.sample_rate) == (1, 44100)
    assert audio.duration == pytest.approx(1.0)
    assert kick.content_types == [ContentType.AUDIO]
    assert "samples/loop.wav" in container.media.ids()


def test_external_audio_reference(tmp_path):
    """Without compression the original path is kept."""
    _write_wave(tmp_path / "audio" / "loop.wav")
    text = PROJECT.replace(MIDI_SOURCE, "      <SOURCE WAVE\n        FILE \"audio/loop.wav\"\n      >\n")
    container = _read(tmp_path, text, ConversionContext(do_not_compress_audio=True))

    _, clips = _kick_clips(container.project)
    audio = clips.clips[0].content.clips[0].content
    assert audio.file.path == "audio/loop.wav"
    assert audio.file.external is True
    assert container.media.ids() == []


def _vst_chunk() -> Node:
    chunk = Node.chunk("VST", "VSTi: Synth (Acme)", "synth.dll", "0", "", "1094861636<56535441424344737974680000000000>", "")
    encode_envelope(chunk, PresetBlob(0x41424344, True, bytes(range(64)), "Init", ""))
    return chunk


def _project_with_devices() -> Node:
    root = Node.chunk("REAPER_PROJECT", "0.1", "6.33/win64")
    root.add_leaf("TEMPO", "120", "4", "4")
    track = root.add_chunk("TRACK")
    track.add_leaf("NAME", "Lead")
    chain = track.add_chunk("FXCHAIN")
    chain.add_leaf("BYPASS", "1", "0", "0")
    chain.add(_vst_chunk())
    envelope = chain.add_chunk("PARMENV", "3:Cutoff", "0", "1", "0.5")
    envelope.add_leaf("PT", "0", "0.25", "0")
    envelope.add_leaf("PT", "2", "0.75", "0")
    chain.add_leaf("BYPASS", "0", "0", "0")
    unknown = chain.add_chunk("VST", "JS: Utility", "utility", "0", "")
    unknown.add_leaf("AAAA")
    return root


def test_devices(tmp_path):
    """VST chunks become devices with their state stored as preset file."""
    container = ReaperReader(tmp_path / "Song.rpp").convert(_project_with_devices())
    track = container.project.structure[1]
    devices = track.channel.devices
    assert len(devices) == 1

    device = devices[0]
    assert device.format == DeviceFormat.VST2
    assert device.device_id == "1094861636"
    assert device.device_name == "Synth"
    assert device.device_vendor == "Acme"
    assert device.device_role == DeviceRole.INSTRUMENT
    assert device.enabled.value is False
    assert device.state.path.startswith("plugins/")
    assert device.state.path.endswith(".fxp")
    assert container.media.read(device.state.path)[:4] == b"CcnK"


def test_device_parameter_envelope(tmp_path):
    """PARMENV creates an automated device parameter."""
    container = ReaperReader(tmp_path / "Song.rpp").convert(_project_with_devices())
    project = container.project
    track = project.structure[1]
    parameter = track.channel.devices[0].parameters[0]
    assert parameter.parameter_id == 3
    assert (parameter.min, parameter.max, parameter.value) == (0.0, 1.0, 0.5)

    points = next(
        t for t in _track_lanes(project, track).lanes
        if isinstance(t, Points) and t.target.parameter is parameter
    )
    assert [p.value for p in points.points] == [0.25, 0.75]


def test_master_parameter_envelope(tmp_path):
    """PARMENV in the master FX chain automates a master device."""
    root = Node.chunk("REAPER_PROJECT", "0.1", "6.33/win64")
    root.add_leaf("TEMPO", "120", "4", "4")
    chain = root.add_chunk("MASTERFXLIST")
    chain.add_leaf("BYPASS", "0", "0", "0")
    chain.add(_vst_chunk())
    envelope = chain.add_chunk("PARMENV", "3:Cutoff", "0", "1", "0.5")
    envelope.add_leaf("PT", "0", "0.25", "0")

    project = ReaperReader(tmp_path / "Song.rpp").convert(root).project
    master = project.structure[0]
    assert master.channel.role == MixerRole.MASTER
    parameter = master.channel.devices[0].parameters[0]
    points = next(
        t for t in _track_lanes(project, master).lanes
        if isinstance(t, Points) and t.target.parameter is parameter
    )
    assert [p.value for p in points.points] == [0.25]


def test_device_with_unreadable_state(tmp_path, caplog):
    """A plugin whose state cannot be decoded is left out with its media."""
    root = _project_with_devices()
    chain = root.child("TRACK").child("FXCHAIN")
    broken = Node.chunk("VST", "VST: Broken (Acme)", "broken.dll", "0", "", "1111638594<565354424B4E62726F6B656E00000000>", "")
    add_lines(broken, int_le(0x42726F6B) + int_le(0) + int_le(0) + int_le(0))
    add_lines(broken, b"\x00\x00")
    chain.children = [node for node in chain.children if node.name != "PARMENV"]
    chain.children[1] = broken

    with caplog.at_level(logging.ERROR, logger="reaperconverter"):
        container = ReaperReader(tmp_path / "Song.rpp").convert(root)
    assert "Could not convert the state of plugin Broken" in caplog.text
    assert container.project.structure[1].channel.devices == []
    assert container.media.ids() == []


def test_read_notes():
    """Only lines starting with a pipe are part of the text."""
    chunk = Node.chunk("NOTES", "0", "2")
    chunk.add(Node("|Hello", [], line="|Hello world"))
    chunk.add(Node("|", [], line="|"))
    assert read_notes(chunk) == "Hello world\r\n"
