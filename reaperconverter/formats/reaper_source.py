"""Conversion of REAPER projects (.rpp) into the DAWproject object graph.

The reader walks the chunk tree of one project file. It collects plugin
states and audio files into the media provider of the resulting container.
All positions in a .rpp file are in seconds. Clips are converted to beats
along the project's tempo map, everything else stays in seconds.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path, PurePosixPath, PureWindowsPath

import soundfile as sf

from reaperconverter.core import constants as tags
from reaperconverter.core.chunk import Node
from reaperconverter.core.context import ConversionContext
from reaperconverter.core.conversions import pan_to_normalized, to_hex_color, value_to_db
from reaperconverter.core.errors import ConversionError, UnsupportedFormat
from reaperconverter.core.midi_events import decode_midi
from reaperconverter.core.models import (
    Application,
    Arrangement,
    Audio,
    AutomationTarget,
    BoolParameter,
    BoolPoint,
    Channel,
    Clip,
    Clips,
    ContentType,
    Device,
    FileReference,
    Interpolation,
    Lanes,
    Marker,
    Markers,
    MetaData,
    MixerRole,
    Notes,
    Points,
    Project,
    RealParameter,
    RealPoint,
    Send,
    SendType,
    TimeSignatureParameter,
    TimeSignaturePoint,
    TimeUnit,
    Track,
    Transport,
    Unit,
)
from reaperconverter.core.plugin_registry import (
    kind_info,
    parse_description,
    parse_device_id,
)
from reaperconverter.core.rpp_parser import read_rpp
from reaperconverter.core.tempo import TempoChange, TempoTimeline, TimeBase
from reaperconverter.core.track_hierarchy import FolderBuilder
from reaperconverter.formats.dawproject_format import DawProjectContainer
from reaperconverter.formats.media_files import LocalMediaFiles
from reaperconverter.utils.config import APP_NAME

logger = logging.getLogger(__name__)

DEFAULT_TEMPO = 120.0

# RENDER_METADATA tag -> metadata attributes
METADATA_TAGS = {
    "ID3:COMM": ("comment",),
    "ID3:TCOM": ("composer", "songwriter"),
    "ID3:TCON": ("genre",),
    "ID3:TCOP": ("copyright",),
    "ID3:TIPL": ("arranger",),
    "ID3:TIT2": ("title",),
    "ID3:TPE1": ("artist",),
    "ID3:TPE2": ("original_artist",),
    "ID3:TYER": ("year",),
    "ID3:TALB": ("album",),
}

# Formats for which the duration can be derived from frames and sample rate
_FRAME_COUNT_FORMATS = frozenset({"WAV", "WAVEX", "RF64", "AIFF", "FLAC"})


class ReaperReader:
    """Reads one REAPER project into a :class:`DawProjectContainer`."""

    def __init__(self, rpp_path: Path, context: ConversionContext | None = None):
        self.path = Path(rpp_path)
        self.context = context or ConversionContext()
        self.source_dir = self.path.parent
        self.media = LocalMediaFiles()
        self.project = Project()
        self.metadata = MetaData()
        self.structure: list[Track] = []
        self.folders = FolderBuilder(self.structure)
        self.time_base = TimeBase(TempoTimeline(None, DEFAULT_TEMPO))
        self._track_lanes: dict[Track, Lanes] = {}
        # Source track index -> sends received by other tracks
        self._send_mapping: dict[int, list[Send]] = {}
        self._send_chunks: dict[Send, Node] = {}

    def read(self) -> DawProjectContainer:
        """Parse the file and convert it."""
        root = read_rpp(self.path)
        return self.convert(root)

    def convert(self, root: Node) -> DawProjectContainer:
        self.project.application = Application(
            f"Cockos Reaper (converted with {APP_NAME})",
            root.param(1, "Unknown"),
        )

        self._convert_metadata(root)
        self._convert_arrangement(root)
        self._convert_transport(root)
        self._convert_master(root)
        self._convert_tracks(root)
        self._convert_markers(root)

        self.project.structure = self.structure
        return DawProjectContainer(self.path.stem, self.project, self.metadata, self.media)

    # ── Metadata ────────────────────────────────────────────────

    def _convert_metadata(self, root: Node):
        author = root.child(tags.PROJECT_AUTHOR)
        if author is not None and author.param(0):
            name = author.param(0)
            self.metadata.artist = name
            self.metadata.producer = name
            self.metadata.composer = name
            self.metadata.songwriter = name

        notes = root.child(tags.PROJECT_NOTES)
        if notes is not None and notes.is_chunk:
            comment = read_notes(notes)
            if comment:
                self.metadata.comment = comment

        render_metadata = root.child(tags.PROJECT_RENDER_METADATA)
        if render_metadata is not None and render_metadata.is_chunk:
            for node in render_metadata.children_named(tags.METADATA_TAG):
                attributes = METADATA_TAGS.get(node.param(0) or "")
                value = node.param(1)
                if attributes is None or value is None:
                    continue
                for attribute in attributes:
                    setattr(self.metadata, attribute, value)

    # ── Arrangement, transport and markers ──────────────────────

    def _convert_arrangement(self, root: Node):
        self.project.arrangement = Arrangement(lanes=Lanes(time_unit=TimeUnit.SECONDS))

        time_lock = root.child(tags.PROJECT_TIMELOCKMODE)
        envelope_lock = root.child(tags.PROJECT_TEMPOENVLOCKMODE)
        logger.debug(
            "Time lock mode %s, envelope lock mode %s",
            time_lock.int_param(0, 1) if time_lock else 1,
            envelope_lock.int_param(0, 1) if envelope_lock else 1,
        )
        # Positions are stored in seconds regardless of the lock modes
        self.time_base.source_is_beats = False
        self.time_base.source_is_envelope_beats = False
        self.time_base.destination_is_beats = False

    def _convert_transport(self, root: Node):
        transport = Transport(time_signature=TimeSignatureParameter())
        tempo = root.child(tags.PROJECT_TEMPO)
        bpm = DEFAULT_TEMPO
        if tempo is not None and tempo.parameters:
            bpm = tempo.float_param(0, DEFAULT_TEMPO)
            if len(tempo.parameters) >= 3:
                transport.time_signature.numerator = tempo.int_param(1, 4)
                transport.time_signature.denominator = tempo.int_param(2, 4)
        transport.tempo = RealParameter(bpm, Unit.BPM, 1.0, 960.0, "Tempo")
        self.project.transport = transport

    def _convert_markers(self, root: Node):
        markers = Markers()
        for node in root.children_named(tags.PROJECT_MARKER):
            # Regions are not supported
            if node.int_param(3, 0) > 0:
                continue
            name = node.param(2, "")
            if not name or not name.strip():
                name = node.param(0, "0")
            color = node.int_param(4, 0)
            markers.markers.append(Marker(
                time=self.time_base.convert(node.float_param(1, 0.0)),
                name=name,
                color=to_hex_color(color) if color > 0 else None,
            ))
        if markers.markers:
            self.project.arrangement.markers = markers

    # ── Master ──────────────────────────────────────────────────

    def _convert_master(self, root: Node):
        channel = Channel(role=MixerRole.MASTER)
        master = Track(name="Master", content_types=[ContentType.AUDIO], channel=channel)
        self.structure.append(master)

        channels = root.child(tags.MASTER_NUMBER_OF_CHANNELS)
        count = channels.int_param(0, -1) if channels else -1
        channel.audio_channels = count if count > 0 else 2

        volume_pan = root.child(tags.MASTER_VOLUME_PAN)
        if volume_pan is not None and volume_pan.parameters:
            channel.volume = RealParameter(
                min(1.0, value_to_db(volume_pan.float_param(0, 1.0), 0)), Unit.LINEAR, 0.0, 1.0, "Volume"
            )
            channel.pan = RealParameter(
                pan_to_normalized(volume_pan.float_param(1, 0.0)), Unit.NORMALIZED, 0.0, 1.0, "Pan"
            )

        mute_solo = root.child(tags.MASTER_MUTE_SOLO)
        state = mute_solo.int_param(0, -1) if mute_solo else -1
        if state > 0:
            channel.mute = BoolParameter(state & 1 > 0, "Mute")
            channel.solo = state & 2 > 0

        color = root.child(tags.MASTER_PEAK_COLOR)
        if color is not None and color.int_param(0, -1) >= 0:
            master.color = to_hex_color(color.int_param(0))

        self._create_track_lanes(master)
        channel.devices = self._convert_devices(master, root, tags.MASTER_FX_LIST)

        tempo_automation = self._convert_tempo_automation(root)
        if tempo_automation is not None:
            self.time_base.timeline = TempoTimeline(tempo_automation, self.project.transport.tempo.value)
        else:
            self.time_base.timeline = TempoTimeline(None, self.project.transport.tempo.value)

        self._convert_automation(master, root, tags.MASTER_VOLUME_ENVELOPE, channel.volume, True)
        self._convert_automation(master, root, tags.MASTER_PANORAMA_ENVELOPE, channel.pan, True)

    def _convert_tempo_automation(self, root: Node) -> list[TempoChange] | None:
        envelope = root.child(tags.PROJECT_TEMPO_ENVELOPE)
        if envelope is None or not envelope.is_chunk:
            return None

        transport = self.project.transport
        tempo_points = Points(
            time_unit=TimeUnit.SECONDS,
            target=AutomationTarget(parameter=transport.tempo),
            unit=Unit.BPM,
        )
        signature_points = Points(
            time_unit=TimeUnit.SECONDS,
            target=AutomationTarget(parameter=transport.time_signature),
        )
        changes: list[TempoChange] = []

        previous = Interpolation.HOLD
        for node in envelope.children_named(tags.ENVELOPE_POINT):
            time = node.float_param(0, 0.0)
            bpm = node.float_param(1, 0.0)
            is_linear = node.int_param(2, tags.SHAPE_SQUARE) == tags.SHAPE_LINEAR
            tempo_points.points.append(RealPoint(time, bpm, previous))
            previous = Interpolation.LINEAR if is_linear else Interpolation.HOLD
            changes.append(TempoChange(time, bpm, is_linear))

            signature = node.int_param(3, 0)
            if signature > 0:
                signature_points.points.append(
                    TimeSignaturePoint(time, signature & 0xFFFF, signature >> 16 & 0xFFFF)
                )

        self.project.arrangement.tempo_automation = tempo_points
        if signature_points.points:
            if signature_points.points[0].time > 0:
                signature_points.points.insert(0, TimeSignaturePoint(
                    0.0, transport.time_signature.numerator, transport.time_signature.denominator
                ))
            self.project.arrangement.time_signature_automation = signature_points
        return changes

    # ── Tracks ──────────────────────────────────────────────────

    def _convert_tracks(self, root: Node):
        tracks = [self._convert_track(node) for node in root.children_named(tags.TRACK) if node.is_chunk]

        # Sends are known only after all tracks have been read
        for index, track in enumerate(tracks):
            sends = self._send_mapping.get(index, [])
            track.channel.sends = sends
            for send in sends:
                self._convert_automation(
                    track, self._send_chunks[send], tags.TRACK_AUX_VOLUME_ENVELOPE, send.volume, True
                )
        for index in self._send_mapping:
            if index >= len(tracks):
                logger.warning("Ignoring sends from unknown track %d", index)

    def _convert_track(self, chunk: Node) -> Track:
        name = chunk.child(tags.TRACK_NAME)
        channel = Channel()
        track = Track(name=name.param(0, "Track") if name else "Track", channel=channel)

        color = chunk.child(tags.TRACK_PEAK_COLOR)
        if color is not None and color.int_param(0, -1) >= 0:
            track.color = to_hex_color(color.int_param(0))

        channels = chunk.child(tags.TRACK_NUMBER_OF_CHANNELS)
        count = channels.int_param(0, -1) if channels else -1
        channel.audio_channels = count if count > 0 else 2

        receives = chunk.children_named(tags.TRACK_AUX_RECEIVE)
        for node in receives:
            send = Send(
                volume=RealParameter(value_to_db(node.float_param(2, 1.0), 12), Unit.LINEAR, 0.0, 1.0, "Volume"),
                pan=RealParameter(node.float_param(3, 0.0), Unit.NORMALIZED, -1.0, 1.0, "Pan"),
                enable=BoolParameter(node.int_param(4, 0) == 0, "Enable"),
                type=SendType.POST if node.int_param(1, 0) == 0 else SendType.PRE,
                name="Send",
                destination=channel,
            )
            self._send_mapping.setdefault(node.int_param(0, 0), []).append(send)
            self._send_chunks[send] = chunk
        if receives:
            channel.role = MixerRole.EFFECT_TRACK
            track.content_types = [ContentType.AUDIO]

        volume_pan = chunk.child(tags.TRACK_VOLUME_PAN)
        if volume_pan is not None and volume_pan.parameters:
            channel.volume = RealParameter(
                value_to_db(volume_pan.float_param(0, 1.0), 0), Unit.LINEAR, 0.0, 1.0, "Volume"
            )
            channel.pan = RealParameter(
                pan_to_normalized(volume_pan.float_param(1, 0.0)), Unit.NORMALIZED, 0.0, 1.0, "Pan"
            )

        mute_solo = chunk.child(tags.TRACK_MUTE_SOLO)
        if mute_solo is not None and mute_solo.parameters:
            channel.mute = BoolParameter(mute_solo.int_param(0, 0) > 0, "Mute")
            if len(mute_solo.parameters) > 1:
                channel.solo = mute_solo.int_param(1, 0) > 0

        structure = chunk.child(tags.TRACK_STRUCTURE)
        if structure is not None and len(structure.parameters) == 2:
            self.folders.add(track, structure.int_param(0, 0), structure.int_param(1, 0))
        else:
            self.folders.add(track)

        lanes = self._create_track_lanes(track)
        channel.devices = self._convert_devices(track, chunk, tags.FXCHAIN)
        content_types = self._convert_clips(lanes, chunk)

        if not receives:
            # REAPER tracks are hybrid, narrow the type to what the items contain
            track.content_types = content_types or [ContentType.NOTES, ContentType.AUDIO]

        self._convert_automation(track, chunk, tags.TRACK_VOLUME_ENVELOPE, channel.volume, True)
        self._convert_automation(track, chunk, tags.TRACK_PANORAMA_ENVELOPE, channel.pan, True)
        self._convert_automation(track, chunk, tags.TRACK_MUTE_ENVELOPE, channel.mute, False)
        return track

    def _create_track_lanes(self, track: Track) -> Lanes:
        lanes = Lanes(track=track)
        self.project.arrangement.lanes.lanes.append(lanes)
        self._track_lanes[track] = lanes
        return lanes

    def _convert_automation(self, track: Track, chunk: Node, envelope_name: str, parameter, interpolate: bool):
        envelope = chunk.child(envelope_name)
        lanes = self._track_lanes.get(track)
        if envelope is None or not envelope.is_chunk or lanes is None:
            return

        points = Points(target=AutomationTarget(parameter=parameter))
        if interpolate:
            points.unit = Unit.LINEAR
        for node in envelope.children_named(tags.ENVELOPE_POINT):
            time = self.time_base.convert(node.float_param(0, 0.0), is_envelope=True)
            if interpolate:
                points.points.append(RealPoint(time, node.float_param(1, 0.0), Interpolation.LINEAR))
            else:
                points.points.append(BoolPoint(time, node.float_param(1, 0.0) > 0))
        lanes.lanes.append(points)

    # ── Devices ─────────────────────────────────────────────────

    def _convert_devices(self, track: Track, chunk: Node, chain_name: str) -> list[Device]:
        chain = chunk.child(chain_name)
        if chain is None or not chain.is_chunk:
            return []

        devices: list[Device] = []
        bypass = offline = False
        device = None
        for node in chain.children:
            if node.name == tags.FXCHAIN_BYPASS:
                bypass = node.int_param(0, 0) > 0
                offline = node.int_param(1, 0) > 0
            elif node.name in (tags.CHUNK_VST, tags.CHUNK_CLAP) and node.is_chunk:
                self.context.check_cancelled()
                device = self._convert_device(node, bypass, offline)
                if device is not None:
                    devices.append(device)
            elif node.name == tags.FXCHAIN_PARAMETER_ENVELOPE and node.is_chunk:
                if device is None:
                    logger.warning("Parameter envelope without device on track %s", track.name)
                    continue
                self._create_automated_parameter(track, device, node)
        return devices

    def _convert_device(self, chunk: Node, bypass: bool, offline: bool) -> Device | None:
        if len(chunk.parameters) < 3:
            return None

        description = parse_description(chunk.param(0) or "")
        if description is None:
            logger.error("Could not identify the plugin type of device: %s", chunk.param(0))
            return None

        device_id = parse_device_id(description.kind, chunk)
        if device_id is None:
            logger.error("No plugin ID found for device: %s", description.name)
            return None

        info = kind_info(description.kind)
        device = Device(
            format=info.device_format,
            name=description.name,
            device_id=device_id,
            device_name=description.name,
            device_vendor=description.vendor,
            device_role=description.role,
            loaded=not offline,
            enabled=BoolParameter(not bypass, "On/Off"),
            state=FileReference(f"plugins/{uuid.uuid4()}{info.file_ending}", False),
        )

        try:
            self.media.add_data(device.state.path, info.read_state(chunk, device_id))
        except (ConversionError, OSError) as e:
            logger.error("Could not convert the state of plugin %s: %s", device.device_name, e)
            return None
        return device

    def _create_automated_parameter(self, track: Track, device: Device, chunk: Node):
        try:
            parameter_id = int((chunk.param(0, "0") or "0").split(":")[0])
        except ValueError:
            parameter_id = 0

        parameter = RealParameter(
            value=chunk.float_param(3, 0.0),
            unit=Unit.LINEAR,
            min=chunk.float_param(1, 0.0),
            max=chunk.float_param(2, 0.0),
            parameter_id=parameter_id,
        )
        device.parameters.append(parameter)

        points = Points(unit=Unit.LINEAR, target=AutomationTarget(parameter=parameter))
        for node in chunk.children_named(tags.ENVELOPE_POINT):
            points.points.append(RealPoint(
                self.time_base.convert(node.float_param(0, 0.0), is_envelope=True),
                node.float_param(1, 0.0),
                Interpolation.LINEAR,
            ))
        self._track_lanes[track].lanes.append(points)

    # ── Clips ───────────────────────────────────────────────────

    def _convert_clips(self, lanes: Lanes, chunk: Node) -> list[ContentType]:
        content_types: list[ContentType] = []
        clips = Clips(time_unit=TimeUnit.BEATS)
        lanes.lanes.append(clips)
        for node in chunk.children_named(tags.ITEM):
            if not node.is_chunk:
                continue
            clip = self._convert_clip(node, content_types)
            if clip is not None:
                clips.clips.append(clip)
        return content_types

    def _convert_clip(self, item: Node, content_types: list[ContentType]) -> Clip | None:
        source = item.child(tags.ITEM_SOURCE)
        if source is None or not source.is_chunk or not source.parameters:
            return None

        timeline = self.time_base.timeline
        position_node = item.child(tags.ITEM_POSITION)
        length_node = item.child(tags.ITEM_LENGTH)
        position = position_node.float_param(0, 0.0) if position_node else 0.0
        length = length_node.float_param(0, 1.0) if length_node else 1.0

        clip = Clip(
            time=timeline.seconds_to_beats(position),
            duration=_beats_between(timeline, position, length),
            content_time_unit=TimeUnit.BEATS,
        )
        name = item.child(tags.ITEM_NAME)
        if name is not None:
            clip.name = name.param(0)
        mute = item.child(tags.ITEM_MUTE)
        if mute is not None and mute.float_param(0, 0.0) > 0:
            clip.enable = False
        notes = item.child(tags.ITEM_NOTES)
        if notes is not None and notes.is_chunk:
            clip.comment = read_notes(notes)

        # FADEIN <shape> <seconds> ...
        fade_in = item.child(tags.ITEM_FADEIN)
        if fade_in is not None and fade_in.float_param(1, 0.0) > 0:
            clip.fade_in_time = _beats_between(timeline, position, fade_in.float_param(1, 0.0))
        fade_out = item.child(tags.ITEM_FADEOUT)
        if fade_out is not None and fade_out.float_param(1, 0.0) > 0:
            seconds = fade_out.float_param(1, 0.0)
            clip.fade_out_time = _beats_between(timeline, position + length - seconds, seconds)

        offset = item.child(tags.ITEM_SAMPLE_OFFSET)
        inner = Clip(
            time=0.0,
            duration=clip.duration,
            play_start=_beats_between(timeline, position, offset.float_param(0, 0.0)) if offset else 0.0,
            content_time_unit=TimeUnit.BEATS,
        )

        source_type = source.param(0)
        if source_type == tags.SOURCE_MIDI:
            inner.content, loop_length = self._convert_midi(source)
            _add_content_type(content_types, ContentType.NOTES)
        elif source_type in tags.AUDIO_SOURCE_TYPES:
            try:
                audio = self._convert_audio(source)
            except UnsupportedFormat as e:
                logger.error("Skipping clip %s: %s", clip.name or "", e)
                return None
            if audio is None:
                return None
            inner.content = audio
            loop_length = _beats_between(timeline, position, max(0.0, audio.duration))
            _add_content_type(content_types, ContentType.AUDIO)
        else:
            logger.warning("Clip type %s is not supported.", source_type)
            return None

        loop = item.child(tags.ITEM_LOOP)
        if loop is not None and loop.int_param(0, 0) > 0:
            clip.loop_start = 0.0
            clip.loop_end = loop_length
            inner.duration = loop_length

        clip.content = Clips(clips=[inner])
        return clip

    def _convert_midi(self, source: Node) -> tuple[Lanes, float]:
        content = decode_midi(source, lenient=self.context.lenient_midi)
        lanes = Lanes(lanes=[Notes(notes=content.notes)])
        lanes.lanes.extend(content.envelopes)
        return lanes, content.length

    def _convert_audio(self, source: Node) -> Audio | None:
        file_node = source.child(tags.SOURCE_FILE)
        if file_node is None or not file_node.param(0):
            return None

        file_path = file_node.param(0).strip('"').replace("\\", "/")
        is_absolute = PurePosixPath(file_path).is_absolute() or PureWindowsPath(file_path).is_absolute()
        filename = PurePosixPath(file_path).name if is_absolute else file_path

        external = self.context.do_not_compress_audio
        audio = Audio(
            file=FileReference(file_path if external else f"samples/{filename}", external),
            algorithm="raw",
        )

        self.context.check_cancelled()
        source_file = Path(file_path) if is_absolute else self.source_dir / file_path
        if not source_file.exists():
            logger.error("Audio file not found, dropping the clip: %s", source_file)
            return None

        set_audio_attributes(audio, source_file)
        if not external:
            self.media.add(audio.file.path, source_file)
        return audio


def set_audio_attributes(audio: Audio, path: Path):
    """Read channels, sample rate and duration of an audio file."""
    try:
        with sf.SoundFile(str(path), mode="r") as handle:
            audio.channels = handle.channels
            audio.sample_rate = int(handle.samplerate)
            if handle.format in _FRAME_COUNT_FORMATS and handle.frames > 0 and handle.samplerate > 0:
                audio.duration = handle.frames / handle.samplerate
            else:
                audio.duration = -1.0
    except (sf.SoundFileError, RuntimeError) as e:
        raise UnsupportedFormat(f"Unknown audio format: {path}") from e

    if audio.duration < 0:
        logger.error("Could not determine the length of audio file %s", path.name)


def read_notes(chunk: Node) -> str:
    """Join the ``|`` prefixed lines of a notes chunk."""
    lines = []
    for node in chunk.children or []:
        text = node.line if node.line is not None else node.name
        if text.startswith("|"):
            lines.append(text[1:])
    return "\r\n".join(lines)


def _beats_between(timeline: TempoTimeline, start: float, duration: float) -> float:
    return timeline.seconds_to_beats(start + duration) - timeline.seconds_to_beats(start)


def _add_content_type(content_types: list[ContentType], content_type: ContentType):
    if content_type not in content_types:
        content_types.append(content_type)


def read_reaper_project(path: Path, context: ConversionContext | None = None) -> DawProjectContainer:
    """Convenience function to read a REAPER project."""
    return ReaperReader(path, context).read()
