"""Conversion of a DAWproject object graph into a REAPER project (.rpp).

The writer flattens the track tree, writes the mixer state of every track
and then walks the arrangement lanes for markers, envelopes and items.
All REAPER positions are written in seconds, beat based content is
converted along the project's tempo automation.
"""

from __future__ import annotations

import dataclasses
import logging
import shutil
from pathlib import Path, PurePosixPath

from reaperconverter.core import constants as tags
from reaperconverter.core.chunk import Node
from reaperconverter.core.context import ConversionContext
from reaperconverter.core.conversions import db_to_value, from_hex_color, normalized_to_pan
from reaperconverter.core.errors import ConversionError, UnsupportedFormat
from reaperconverter.core.midi_events import encode_midi
from reaperconverter.core.models import (
    Audio,
    BoolPoint,
    Channel,
    Clip,
    Clips,
    Device,
    DeviceRole,
    IntegerPoint,
    Interpolation,
    Lanes,
    Markers,
    MixerRole,
    Notes,
    Points,
    RealParameter,
    RealPoint,
    SendType,
    TimeSignatureParameter,
    TimeSignaturePoint,
    Timeline,
    TimeUnit,
    Track,
    Unit,
    Warps,
)
from reaperconverter.core.plugin_registry import (
    PluginKind,
    create_device_id,
    create_device_name,
    kind_for_format,
    kind_info,
)
from reaperconverter.core.rpp_parser import write_rpp
from reaperconverter.core.tempo import TempoTimeline, TimeBase, tempo_changes_from_points
from reaperconverter.core.track_hierarchy import flatten_tracks
from reaperconverter.formats.dawproject_format import DawProjectContainer
from reaperconverter.formats.reaper_source import DEFAULT_TEMPO, METADATA_TAGS

logger = logging.getLogger(__name__)

VOLUME_PAN_ERROR = "Only linear volumes and panoramas are supported."


class ReaperWriter:
    """Writes one :class:`DawProjectContainer` as a REAPER project."""

    def __init__(self, container: DawProjectContainer, context: ConversionContext | None = None):
        self.container = container
        self.project = container.project
        self.context = context or ConversionContext()
        self.root = Node.chunk(tags.PROJECT_CHUNK, tags.PROJECT_VERSION, tags.PROJECT_APP_VERSION)
        self.time_base = TimeBase(TempoTimeline(None, DEFAULT_TEMPO), destination_is_beats=False)
        self.master_track: Track | None = None
        # Media IDs of the audio files to copy next to the project
        self.audio_files: list[str] = []

        self._track_chunks: dict[Track, Node] = {}
        self._channel_chunks: dict[Channel, Node] = {}
        self._track_nodes: list[Node] = []
        self._automation: dict[object, tuple[Points, bool]] = {}
        self._written_parameters: set[RealParameter] = set()
        self._marker_index = 1

    def write(self, output_dir: Path) -> Path:
        """Convert and write ``<output_dir>/<name>/<name>.rpp`` plus its audio files."""
        root = self.convert()

        name = self.container.name
        project_dir = Path(output_dir) / name
        project_dir.mkdir(parents=True, exist_ok=True)
        path = project_dir / f"{name}.rpp"
        write_rpp(path, root)
        logger.info("Wrote %s", path)

        self._copy_audio_files(project_dir)
        return path

    def convert(self) -> Node:
        arrangement = self.project.arrangement
        arrangement_beats = _is_beats(arrangement.lanes.time_unit, True)
        self._collect_automation(arrangement.lanes, arrangement_beats)

        self._convert_metadata()
        self._convert_transport(arrangement_beats)
        self._convert_master()
        self.root.add_leaf(tags.PROJECT_TIMELOCKMODE, 1)
        self.root.add_leaf(tags.PROJECT_TEMPOENVLOCKMODE, 1)
        self._convert_tracks()
        self._convert_tempo_envelope()

        if arrangement.markers is not None:
            self._convert_markers(arrangement.markers, _is_beats(arrangement.markers.time_unit, arrangement_beats))
        self._convert_lanes(arrangement.lanes, arrangement_beats, None)

        for node in self._track_nodes:
            self.root.add(node)
        return self.root

    # ── Metadata and transport ──────────────────────────────────

    def _convert_metadata(self):
        metadata = self.container.metadata

        authors: list[str] = []
        for name in (metadata.artist, metadata.producer, metadata.songwriter):
            if name and name not in authors:
                authors.append(name)
        if authors:
            self.root.add_leaf(tags.PROJECT_AUTHOR, ", ".join(authors))

        if metadata.comment:
            notes = self.root.add_chunk(tags.PROJECT_NOTES, 0, 2)
            for line in metadata.comment.splitlines():
                notes.add(Node("|" + line))

        render_metadata = Node.chunk(tags.PROJECT_RENDER_METADATA)
        for tag, attributes in METADATA_TAGS.items():
            value = getattr(metadata, attributes[0])
            if value:
                render_metadata.add_leaf(tags.METADATA_TAG, tag, value)
        if render_metadata.children:
            self.root.add(render_metadata)

    def _convert_transport(self, arrangement_beats: bool):
        transport = self.project.transport
        tempo = DEFAULT_TEMPO
        if transport.tempo is not None and transport.tempo.value:
            tempo = transport.tempo.value
        signature = transport.time_signature or TimeSignatureParameter()
        self.root.add_leaf(tags.PROJECT_TEMPO, float(tempo), signature.numerator, signature.denominator)

        changes = None
        tempo_automation = self._tempo_automation(arrangement_beats)
        if tempo_automation is not None:
            points, is_beats = tempo_automation
            changes = tempo_changes_from_points(points.points, in_beats=is_beats, default_tempo=tempo) or None
        self.time_base.timeline = TempoTimeline(changes, tempo)

    def _tempo_automation(self, arrangement_beats: bool) -> tuple[Points, bool] | None:
        arrangement = self.project.arrangement
        if arrangement.tempo_automation is not None and arrangement.tempo_automation.points:
            points = arrangement.tempo_automation
            return points, _is_beats(points.time_unit, arrangement_beats)
        if self.project.transport.tempo is not None:
            return self._automation.get(self.project.transport.tempo)
        return None

    def _signature_automation(self, arrangement_beats: bool) -> tuple[Points, bool] | None:
        arrangement = self.project.arrangement
        if arrangement.time_signature_automation is not None and arrangement.time_signature_automation.points:
            points = arrangement.time_signature_automation
            return points, _is_beats(points.time_unit, arrangement_beats)
        if self.project.transport.time_signature is not None:
            return self._automation.get(self.project.transport.time_signature)
        return None

    def _collect_automation(self, lanes: Lanes, is_beats: bool):
        """Index all automation by target parameter before anything is written."""
        for timeline in lanes.lanes:
            beats = _is_beats(timeline.time_unit, is_beats)
            if isinstance(timeline, Lanes):
                self._collect_automation(timeline, beats)
            elif isinstance(timeline, Points) and timeline.target.parameter is not None:
                self._automation.setdefault(timeline.target.parameter, (timeline, beats))

    # ── Master and tracks ───────────────────────────────────────

    def _convert_master(self):
        for track in self.project.structure:
            if not track.is_folder and track.channel is not None and track.channel.role == MixerRole.MASTER:
                self.master_track = track
                break
        if self.master_track is None:
            return

        master = self.master_track
        channel = master.channel
        self.root.add_leaf(tags.MASTER_NUMBER_OF_CHANNELS, channel.audio_channels, channel.audio_channels)
        volume, pan = _checked_volume_pan(master)
        self.root.add_leaf(tags.MASTER_VOLUME_PAN, volume, pan, -1, -1, 1)

        state = 2 if channel.solo else 0
        if channel.mute is not None and channel.mute.value:
            state |= 1
        self.root.add_leaf(tags.MASTER_MUTE_SOLO, state)

        if master.color:
            self.root.add_leaf(tags.MASTER_PEAK_COLOR, from_hex_color(master.color))

        self._convert_devices(self.root, tags.MASTER_FX_LIST, channel.devices)
        self._track_chunks[master] = self.root
        self._channel_chunks[channel] = self.root

    def _convert_tracks(self):
        structure = [track for track in self.project.structure if track is not self.master_track]
        infos = flatten_tracks(structure)

        mixer_tracks: dict[int, Track] = {}
        for info in infos:
            chunk = Node.chunk(tags.TRACK)
            chunk.add_leaf(tags.TRACK_NAME, info.name)
            chunk.add_leaf(tags.TRACK_STRUCTURE, info.type, info.direction)

            color = (info.folder or info.track).color
            if color:
                chunk.add_leaf(tags.TRACK_PEAK_COLOR, from_hex_color(color))

            for track in (info.folder, info.track):
                if track is not None:
                    self._track_chunks[track] = chunk

            mixer_track = info.track
            if mixer_track is None and info.folder.channel is not None:
                mixer_track = info.folder
            if mixer_track is not None and mixer_track.channel is not None:
                self._convert_track(chunk, mixer_track)
                mixer_tracks[info.index] = mixer_track
            self._track_nodes.append(chunk)

        # All destination chunks exist now
        for index, track in mixer_tracks.items():
            self._convert_sends(index, track)

    def _convert_track(self, chunk: Node, track: Track):
        channel = track.channel
        volume, pan = _checked_volume_pan(track)
        chunk.add_leaf(tags.TRACK_VOLUME_PAN, volume, pan, -1, -1, 1)
        mute = channel.mute is not None and bool(channel.mute.value)
        chunk.add_leaf(tags.TRACK_MUTE_SOLO, mute, channel.solo, 0)
        chunk.add_leaf(tags.TRACK_NUMBER_OF_CHANNELS, channel.audio_channels)
        self._convert_devices(chunk, tags.FXCHAIN, channel.devices)
        self._channel_chunks[channel] = chunk

    def _convert_sends(self, index: int, track: Track):
        for send in track.channel.sends:
            destination = self._channel_chunks.get(send.destination)
            if destination is None:
                logger.warning("Send of track %s has no destination.", track.name)
                continue
            volume = 1.0
            if send.volume is not None and send.volume.value is not None:
                volume = db_to_value(send.volume.value, 12)
            pan = send.pan.value if send.pan is not None and send.pan.value is not None else 0.0
            muted = send.enable is not None and send.enable.value is False
            mode = 0 if send.type == SendType.POST else 1
            destination.add_leaf(tags.TRACK_AUX_RECEIVE, index, mode, volume, float(pan), muted)

    # ── Devices ─────────────────────────────────────────────────

    def _convert_devices(self, chunk: Node, chain_name: str, devices: list[Device]):
        if not devices:
            return
        chain = chunk.add_chunk(chain_name)
        for device in devices:
            self.context.check_cancelled()
            for node in self._convert_device(device):
                chain.add(node)

    def _convert_device(self, device: Device) -> list[Node]:
        if device.state is None:
            logger.warning("Device %s has no state and is skipped.", device.name)
            return []
        try:
            kind = kind_for_format(device.format)
        except KeyError:
            logger.warning("Device format %s of %s is not supported.", device.format.value, device.name)
            return []
        if not device.device_id:
            logger.error("No plugin ID found for device: %s", device.name)
            return []

        device_name = device.device_name or device.name
        description = create_device_name(
            kind, device_name, device.device_vendor, device.device_role == DeviceRole.INSTRUMENT
        )
        try:
            if kind == PluginKind.CLAP:
                chunk = Node.chunk(tags.CHUNK_CLAP, description, device.device_id, "")
            else:
                plugin_id = create_device_id(kind, device.device_id, device_name)
                chunk = Node.chunk(tags.CHUNK_VST, description, "", 0, "", plugin_id)
            kind_info(kind).write_state(chunk, self.container.media.read(device.state.path))
        except (ConversionError, OSError, ValueError) as e:
            logger.error("Could not convert the state of plugin %s: %s", device_name, e)
            return []

        enabled = device.enabled is None or device.enabled.value is not False
        nodes = [Node.leaf(tags.FXCHAIN_BYPASS, not enabled, not device.loaded), chunk]
        for index, parameter in enumerate(device.parameters):
            automation = self._automation.get(parameter)
            if automation is None:
                continue
            nodes.append(self._create_parameter_envelope(parameter, index, *automation))
            self._written_parameters.add(parameter)
        return nodes

    def _create_parameter_envelope(self, parameter: RealParameter, index: int, points: Points, is_beats: bool) -> Node:
        parameter_id = parameter.parameter_id if parameter.parameter_id is not None else index
        envelope = Node.chunk(
            tags.FXCHAIN_PARAMETER_ENVELOPE,
            parameter_id,
            float(parameter.min or 0.0),
            float(parameter.max if parameter.max is not None else 1.0),
            float(parameter.value or 0.0),
        )
        _add_envelope_header(envelope)
        self._add_points(envelope, points, is_beats)
        return envelope

    # ── Tempo and markers ───────────────────────────────────────

    def _convert_tempo_envelope(self):
        arrangement_beats = _is_beats(self.project.arrangement.lanes.time_unit, True)
        timeline = self.time_base.timeline
        # time -> [seconds, bpm, shape, signature]
        entries: dict[float, list] = {}

        tempo_automation = self._tempo_automation(arrangement_beats)
        if tempo_automation is not None:
            points, is_beats = tempo_automation
            real_points = sorted((p for p in points.points if isinstance(p, RealPoint)), key=lambda p: p.time)
            for index, point in enumerate(real_points):
                following = real_points[index + 1] if index + 1 < len(real_points) else None
                linear = following is not None and following.interpolation == Interpolation.LINEAR
                seconds = self.time_base.to_seconds(point.time, is_beats)
                entry = entries.setdefault(round(seconds, 9), [seconds, None, tags.SHAPE_SQUARE, 0])
                entry[1] = point.value
                entry[2] = tags.SHAPE_LINEAR if linear else tags.SHAPE_SQUARE

        signature_automation = self._signature_automation(arrangement_beats)
        if signature_automation is not None:
            points, is_beats = signature_automation
            for point in points.points:
                if not isinstance(point, TimeSignaturePoint):
                    continue
                seconds = self.time_base.to_seconds(point.time, is_beats)
                entry = entries.setdefault(round(seconds, 9), [seconds, None, tags.SHAPE_SQUARE, 0])
                entry[3] = (point.denominator << 16) + point.numerator

        if not entries:
            return
        envelope = self.root.add_chunk(tags.PROJECT_TEMPO_ENVELOPE)
        _add_envelope_header(envelope)
        for key in sorted(entries):
            seconds, bpm, shape, signature = entries[key]
            if bpm is None:
                bpm = timeline.tempo_at(seconds)
            parameters = [seconds, float(bpm), shape]
            if signature:
                parameters.append(signature)
            envelope.add_leaf(tags.ENVELOPE_POINT, *parameters)

    def _convert_markers(self, markers: Markers, is_beats: bool):
        for marker in markers.markers:
            color = 0
            if marker.color:
                try:
                    color = from_hex_color(marker.color)
                except ValueError:
                    logger.warning("Ignoring invalid marker color %s", marker.color)
            self.root.add_leaf(
                tags.PROJECT_MARKER,
                self._marker_index,
                self.time_base.to_seconds(marker.time, is_beats),
                marker.name or "",
                0,
                color,
            )
            self._marker_index += 1

    # ── Lanes ───────────────────────────────────────────────────

    def _convert_lanes(self, lanes: Lanes, is_beats: bool, track: Track | None):
        for timeline in lanes.lanes:
            beats = _is_beats(timeline.time_unit, is_beats)
            lane_track = timeline.track or track
            if isinstance(timeline, Lanes):
                self._convert_lanes(timeline, beats, lane_track)
            elif isinstance(timeline, Markers):
                self._convert_markers(timeline, beats)
            elif isinstance(timeline, Points):
                self._convert_envelope(lane_track, timeline, beats)
            elif isinstance(timeline, Clips):
                chunk = self._track_chunks.get(lane_track) if lane_track is not None else None
                if chunk is None or chunk is self.root:
                    logger.warning("Clips without a matching track are skipped.")
                    continue
                self._convert_items(chunk, timeline.clips, beats)
            else:
                logger.warning("Lane type %s is not supported.", type(timeline).__name__)

    def _convert_envelope(self, track: Track | None, points: Points, is_beats: bool):
        parameter = points.target.parameter
        transport = self.project.transport
        if parameter is None:
            logger.warning("Automation without target parameter is skipped.")
            return
        if parameter is transport.tempo or parameter is transport.time_signature:
            return
        if parameter in self._written_parameters:
            return
        if track is None or track.channel is None:
            logger.warning("Automation without track is skipped.")
            return

        channel = track.channel
        is_master = track is self.master_track
        chunk = self._track_chunks.get(track)
        name = None
        if parameter is channel.volume:
            name = tags.MASTER_VOLUME_ENVELOPE if is_master else tags.TRACK_VOLUME_ENVELOPE
        elif parameter is channel.pan:
            name = tags.MASTER_PANORAMA_ENVELOPE if is_master else tags.TRACK_PANORAMA_ENVELOPE
        elif parameter is channel.mute and not is_master:
            name = tags.TRACK_MUTE_ENVELOPE
        else:
            for send in channel.sends:
                if parameter is send.volume:
                    name = tags.TRACK_AUX_VOLUME_ENVELOPE
                    chunk = self._channel_chunks.get(send.destination)
                    break

        if name is None or chunk is None:
            logger.warning("Unsupported automation target on track %s", track.name)
            return

        envelope = chunk.add_chunk(name)
        _add_envelope_header(envelope)
        is_pan = parameter is channel.pan and points.unit == Unit.NORMALIZED
        self._add_points(envelope, points, is_beats, normalized_to_pan if is_pan else None)

    def _add_points(self, envelope: Node, points: Points, is_beats: bool, transform=None):
        values = points.points
        for index, point in enumerate(values):
            seconds = self.time_base.to_seconds(point.time, is_beats)
            if isinstance(point, BoolPoint):
                envelope.add_leaf(tags.ENVELOPE_POINT, seconds, int(point.value), tags.SHAPE_SQUARE)
                continue
            if not isinstance(point, (RealPoint, IntegerPoint)):
                continue
            value = float(point.value)
            if transform is not None:
                value = transform(value)
            following = values[index + 1] if index + 1 < len(values) else None
            hold = isinstance(following, RealPoint) and following.interpolation == Interpolation.HOLD
            envelope.add_leaf(tags.ENVELOPE_POINT, seconds, value, tags.SHAPE_SQUARE if hold else tags.SHAPE_LINEAR)

    # ── Items ───────────────────────────────────────────────────

    def _convert_items(
        self,
        chunk: Node,
        clips: list[Clip],
        is_beats: bool,
        window: tuple[float, float, float] | None = None,
        outer: Clip | None = None,
    ):
        """Write the clips as items.

        ``window`` is (position, duration, offset) of an enclosing clip whose
        content the clips are. Only the visible part of each clip is written.
        """
        for clip in clips:
            start = clip.time
            end = clip.time + clip.duration
            position = clip.time
            if window is not None:
                parent_position, parent_duration, parent_offset = window
                start = max(start, parent_offset)
                # A looped parent repeats its content over the whole window
                looped = outer is not None and outer.loop_end is not None
                end = parent_offset + parent_duration if looped else min(end, parent_offset + parent_duration)
                if end <= start:
                    continue
                position = parent_position + start - parent_offset
            offset = start - clip.time + (clip.play_start or 0.0)
            duration = end - start

            if isinstance(clip.content, Clips):
                self._convert_items(chunk, clip.content.clips, is_beats, (position, duration, offset), outer or clip)
                continue
            self._convert_item(chunk, clip, outer or clip, position, duration, offset, is_beats)

    def _convert_item(
        self,
        chunk: Node,
        clip: Clip,
        template: Clip,
        position: float,
        duration: float,
        offset: float,
        is_beats: bool,
    ):
        notes = _find_notes(clip.content)
        audio, warps = _find_audio(clip.content)
        if notes is None and audio is None:
            logger.warning("Clip content of %s is not supported.", clip.name or template.name)
            return

        start = self.time_base.to_seconds(position, is_beats)
        item = chunk.add_chunk(tags.ITEM)
        item.add_leaf(tags.ITEM_NAME, clip.name or template.name or "")
        item.add_leaf(tags.ITEM_POSITION, start)
        item.add_leaf(tags.ITEM_LENGTH, self.time_base.to_seconds(position + duration, is_beats) - start)
        item.add_leaf(tags.ITEM_SAMPLE_OFFSET, self._seconds_between(position, offset, is_beats))
        if not (clip.enable and template.enable):
            item.add_leaf(tags.ITEM_MUTE, 1, 0)

        fade_in = clip.fade_in_time or template.fade_in_time or 0.0
        fade_out = clip.fade_out_time or template.fade_out_time or 0.0
        item.add_leaf(tags.ITEM_FADEIN, 1, self._seconds_between(position, fade_in, is_beats), 0)
        item.add_leaf(tags.ITEM_FADEOUT, 1, self._seconds_between(position + duration - fade_out, fade_out, is_beats), 0)

        comment = clip.comment or template.comment
        if comment:
            item_notes = item.add_chunk(tags.ITEM_NOTES)
            for line in comment.splitlines():
                item_notes.add(Node("|" + line))

        loop_end = template.loop_end if template.loop_end is not None else clip.loop_end
        loop_start = template.loop_start if template.loop_start is not None else clip.loop_start
        looped = loop_end is not None
        item.add_leaf(tags.ITEM_LOOP, looped)

        if notes is not None:
            length = loop_end - (loop_start or 0.0) if looped else offset + duration
            source_start = position - offset
            notes_beats = _is_beats(notes.time_unit, _is_beats(clip.content_time_unit, is_beats))
            source = item.add_chunk(tags.ITEM_SOURCE, tags.SOURCE_MIDI)
            encode_midi(
                source,
                [self._note_in_beats(note, source_start, notes_beats, is_beats) for note in notes.notes],
                self._beats_between(source_start, length, is_beats),
            )
            return

        rate = self._playrate(warps, position, _is_beats(clip.content_time_unit, is_beats)) if warps else 1.0
        item.add_leaf(tags.ITEM_PLAYRATE, rate, 1, "0.000", -1)
        file_name = PurePosixPath(audio.file.path.replace("\\", "/")).name
        source_type = tags.SOURCE_FLAC if file_name.lower().endswith(".flac") else tags.SOURCE_WAVE
        source = item.add_chunk(tags.ITEM_SOURCE, source_type)
        source.add_leaf(tags.SOURCE_FILE, file_name)
        if audio.file.path not in self.audio_files:
            self.audio_files.append(audio.file.path)

    def _note_in_beats(self, note, source_start: float, notes_beats: bool, is_beats: bool):
        if notes_beats:
            return note
        # Seconds relative to the source start, measured along the arrangement
        time = self._beats_between(source_start, self._to_unit(source_start, note.time, is_beats), is_beats)
        end = self._beats_between(
            source_start, self._to_unit(source_start, note.time + note.duration, is_beats), is_beats
        )
        return dataclasses.replace(note, time=time, duration=end - time)

    def _to_unit(self, start: float, seconds: float, is_beats: bool) -> float:
        """Express a span of seconds that starts at ``start`` in the arrangement unit."""
        if not is_beats:
            return seconds
        timeline = self.time_base.timeline
        begin = timeline.beats_to_seconds(start)
        return timeline.seconds_to_beats(begin + seconds) - start

    def _playrate(self, warps: Warps, position: float, is_beats: bool) -> float:
        events = warps.events
        if len(events) < 2 or events[0].time != 0 or events[0].content_time != 0:
            logger.warning("Only warps that start at zero are supported, using the original play rate.")
            return 1.0
        warp = events[1]
        time = self._seconds_between(position, warp.time, _is_beats(warps.time_unit, is_beats))
        content_time = warp.content_time
        if warps.content_time_unit == TimeUnit.BEATS:
            content_time = self._seconds_between(position, content_time, True)
        if time <= 0 or content_time <= 0:
            return 1.0
        return content_time / time

    def _seconds_between(self, start: float, duration: float, is_beats: bool) -> float:
        if not is_beats:
            return duration
        return self.time_base.to_seconds(start + duration, True) - self.time_base.to_seconds(start, True)

    def _beats_between(self, start: float, duration: float, is_beats: bool) -> float:
        if is_beats:
            return duration
        timeline = self.time_base.timeline
        return timeline.seconds_to_beats(start + duration) - timeline.seconds_to_beats(start)

    # ── Audio files ─────────────────────────────────────────────

    def _copy_audio_files(self, project_dir: Path):
        for media_id in self.audio_files:
            self.context.check_cancelled()
            target = project_dir / PurePosixPath(media_id.replace("\\", "/")).name
            try:
                with self.container.media.stream(media_id) as source, open(target, "wb") as out:
                    shutil.copyfileobj(source, out)
            except FileNotFoundError:
                logger.error("Audio file not found: %s", media_id)
                continue
            logger.debug("Copied %s", target.name)


def _is_beats(time_unit: TimeUnit | None, inherited: bool) -> bool:
    if time_unit is None:
        return inherited
    return time_unit == TimeUnit.BEATS


def _checked_volume_pan(track: Track) -> tuple[float, float]:
    """Volume and pan of a track, unity gain and center if they cannot be expressed."""
    try:
        return _volume_pan(track)
    except UnsupportedFormat as e:
        logger.error("Resetting volume and pan of track %s: %s", track.name, e)
        return 1.0, 0.0


def _volume_pan(track: Track) -> tuple[float, float]:
    channel = track.channel
    volume = 1.0
    if channel.volume is not None and channel.volume.value is not None:
        if channel.volume.unit != Unit.LINEAR:
            raise UnsupportedFormat(VOLUME_PAN_ERROR, track.name)
        volume = db_to_value(channel.volume.value, 0)

    pan = 0.0
    if channel.pan is not None and channel.pan.value is not None:
        if channel.pan.unit == Unit.NORMALIZED:
            pan = normalized_to_pan(channel.pan.value)
        elif channel.pan.unit == Unit.LINEAR:
            pan = float(channel.pan.value)
        else:
            raise UnsupportedFormat(VOLUME_PAN_ERROR, track.name)
    return volume, pan


def _add_envelope_header(envelope: Node):
    envelope.add_leaf(tags.ENVELOPE_ACTIVE, 1, -1)
    envelope.add_leaf(tags.ENVELOPE_VISIBLE, 1, 1, 1)
    envelope.add_leaf(tags.ENVELOPE_ARMED, 0)
    envelope.add_leaf(tags.ENVELOPE_DEFAULT_SHAPE, 0, -1, -1)


def _find_notes(content: Timeline | None) -> Notes | None:
    if isinstance(content, Notes):
        return content
    if isinstance(content, Lanes):
        for timeline in content.lanes:
            notes = _find_notes(timeline)
            if notes is not None:
                return notes
    return None


def _find_audio(content: Timeline | None) -> tuple[Audio | None, Warps | None]:
    if isinstance(content, Audio):
        return content, None
    if isinstance(content, Warps):
        audio, _ = _find_audio(content.content)
        return audio, content
    if isinstance(content, Lanes):
        for timeline in content.lanes:
            audio, warps = _find_audio(timeline)
            if audio is not None:
                return audio, warps
    return None, None


def write_reaper_project(
    container: DawProjectContainer, output_dir: Path, context: ConversionContext | None = None
) -> Path:
    """Convenience function to write a container as a REAPER project."""
    return ReaperWriter(container, context).write(output_dir)
