"""XML marshalling of the DAWproject object graph.

Writes and reads ``project.xml`` and ``metadata.xml``. Object references
(send destinations, automation targets, lane tracks) are stored as ``id``
attributes which are assigned per write call and resolved per read call.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Callable

from reaperconverter.core.errors import FormatError
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
    DeviceFormat,
    DeviceRole,
    ExpressionType,
    FileReference,
    IntegerPoint,
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
    TimeSignaturePoint,
    Timeline,
    TimeUnit,
    Track,
    Transport,
    Unit,
    Warp,
    Warps,
)

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"

METADATA_FIELDS = {
    "Title": "title",
    "Artist": "artist",
    "Album": "album",
    "OriginalArtist": "original_artist",
    "Composer": "composer",
    "Songwriter": "songwriter",
    "Producer": "producer",
    "Arranger": "arranger",
    "Year": "year",
    "Genre": "genre",
    "Copyright": "copyright",
    "Website": "website",
    "Comment": "comment",
}


def _text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _set(element: ET.Element, name: str, value):
    if value is not None:
        element.set(name, _text(value))


def _float(element: ET.Element, name: str, default: float | None = None) -> float | None:
    value = element.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise FormatError(f"Attribute {name} is not a number: {value}", element.tag) from e


def _int(element: ET.Element, name: str, default: int | None = None) -> int | None:
    value = _float(element, name)
    return default if value is None else int(value)


def _bool(element: ET.Element, name: str, default: bool | None = None) -> bool | None:
    value = element.get(name)
    if value is None:
        return default
    return value.lower() == "true"


def _enum(enum_type, value: str | None, default=None):
    if value is None:
        return default
    try:
        return enum_type(value)
    except ValueError:
        logger.warning("Unknown %s value: %s", enum_type.__name__, value)
        return default


# ── Writing ─────────────────────────────────────────────────────

class ProjectXmlWriter:
    """Builds the ``Project`` element. One instance per written project."""

    def __init__(self, project: Project):
        self.project = project
        self._ids: dict[object, str] = {}

    def _id(self, obj) -> str:
        if obj not in self._ids:
            self._ids[obj] = f"id{len(self._ids)}"
        return self._ids[obj]

    def write(self) -> ET.Element:
        root = ET.Element("Project", version=FORMAT_VERSION)
        application = self.project.application
        ET.SubElement(root, "Application", name=application.name, version=application.version)

        transport = ET.SubElement(root, "Transport")
        if self.project.transport.tempo is not None:
            self._real_parameter(transport, "Tempo", self.project.transport.tempo)
        signature = self.project.transport.time_signature
        if signature is not None:
            ET.SubElement(
                transport,
                "TimeSignature",
                numerator=str(signature.numerator),
                denominator=str(signature.denominator),
                id=self._id(signature),
            )

        structure = ET.SubElement(root, "Structure")
        for track in self.project.structure:
            self._track(structure, track)

        self._arrangement(root, self.project.arrangement)
        return root

    # Parameters

    def _real_parameter(self, parent: ET.Element, tag: str, parameter: RealParameter) -> ET.Element:
        element = ET.SubElement(parent, tag, id=self._id(parameter))
        _set(element, "name", parameter.name)
        _set(element, "max", parameter.max)
        _set(element, "min", parameter.min)
        element.set("unit", parameter.unit.value)
        _set(element, "value", parameter.value)
        _set(element, "parameterID", parameter.parameter_id)
        return element

    def _bool_parameter(self, parent: ET.Element, tag: str, parameter: BoolParameter) -> ET.Element:
        element = ET.SubElement(parent, tag, id=self._id(parameter))
        _set(element, "name", parameter.name)
        _set(element, "value", parameter.value)
        return element

    # Structure

    def _track(self, parent: ET.Element, track: Track):
        element = ET.SubElement(parent, "Track", id=self._id(track))
        element.set("contentType", " ".join(c.value for c in track.content_types))
        element.set("loaded", _text(track.loaded))
        _set(element, "name", track.name)
        _set(element, "color", track.color)
        _set(element, "comment", track.comment)
        if track.channel is not None:
            self._channel(element, track.channel)
        for child in track.tracks:
            self._track(element, child)

    def _channel(self, parent: ET.Element, channel: Channel):
        element = ET.SubElement(parent, "Channel", id=self._id(channel))
        element.set("audioChannels", str(channel.audio_channels))
        if channel.destination is not None:
            element.set("destination", self._id(channel.destination))
        element.set("role", channel.role.value)
        element.set("solo", _text(channel.solo))

        if channel.devices:
            devices = ET.SubElement(element, "Devices")
            for device in channel.devices:
                self._device(devices, device)
        if channel.mute is not None:
            self._bool_parameter(element, "Mute", channel.mute)
        if channel.pan is not None:
            self._real_parameter(element, "Pan", channel.pan)
        if channel.sends:
            sends = ET.SubElement(element, "Sends")
            for send in channel.sends:
                self._send(sends, send)
        if channel.volume is not None:
            self._real_parameter(element, "Volume", channel.volume)

    def _send(self, parent: ET.Element, send: Send):
        element = ET.SubElement(parent, "Send", id=self._id(send))
        if send.destination is not None:
            element.set("destination", self._id(send.destination))
        element.set("type", send.type.value)
        _set(element, "name", send.name)
        self._real_parameter(element, "Volume", send.volume)
        if send.pan is not None:
            self._real_parameter(element, "Pan", send.pan)
        if send.enable is not None:
            self._bool_parameter(element, "Enable", send.enable)

    def _device(self, parent: ET.Element, device: Device):
        element = ET.SubElement(parent, device.format.value, id=self._id(device))
        _set(element, "deviceID", device.device_id)
        element.set("deviceName", device.device_name)
        element.set("deviceRole", device.device_role.value)
        _set(element, "deviceVendor", device.device_vendor)
        element.set("loaded", _text(device.loaded))
        element.set("name", device.name)
        if device.parameters:
            parameters = ET.SubElement(element, "Parameters")
            for parameter in device.parameters:
                self._real_parameter(parameters, "RealParameter", parameter)
        if device.enabled is not None:
            self._bool_parameter(element, "Enabled", device.enabled)
        if device.state is not None:
            ET.SubElement(element, "State", path=device.state.path, external=_text(device.state.external))

    # Arrangement

    def _arrangement(self, root: ET.Element, arrangement: Arrangement):
        element = ET.SubElement(root, "Arrangement", id=self._id(arrangement))
        if arrangement.time_signature_automation is not None:
            self._points(element, arrangement.time_signature_automation, "TimeSignatureAutomation")
        if arrangement.tempo_automation is not None:
            self._points(element, arrangement.tempo_automation, "TempoAutomation")
        if arrangement.markers is not None:
            self._timeline(element, arrangement.markers)
        self._timeline(element, arrangement.lanes)

    def _timeline_attributes(self, element: ET.Element, timeline: Timeline):
        element.set("id", self._id(timeline))
        if timeline.track is not None:
            element.set("track", self._id(timeline.track))
        if timeline.time_unit is not None:
            element.set("timeUnit", timeline.time_unit.value)

    def _timeline(self, parent: ET.Element, timeline: Timeline):
        if isinstance(timeline, Lanes):
            element = ET.SubElement(parent, "Lanes")
            self._timeline_attributes(element, timeline)
            for lane in timeline.lanes:
                self._timeline(element, lane)
        elif isinstance(timeline, Clips):
            element = ET.SubElement(parent, "Clips")
            self._timeline_attributes(element, timeline)
            for clip in timeline.clips:
                self._clip(element, clip)
        elif isinstance(timeline, Notes):
            element = ET.SubElement(parent, "Notes")
            self._timeline_attributes(element, timeline)
            for note in timeline.notes:
                ET.SubElement(
                    element,
                    "Note",
                    time=_text(note.time),
                    duration=_text(note.duration),
                    channel=str(note.channel),
                    key=str(note.key),
                    vel=_text(note.velocity),
                    rel=_text(note.release_velocity),
                )
        elif isinstance(timeline, Points):
            self._points(parent, timeline, "Points")
        elif isinstance(timeline, Audio):
            element = ET.SubElement(parent, "Audio")
            self._timeline_attributes(element, timeline)
            element.set("algorithm", timeline.algorithm)
            element.set("channels", str(timeline.channels))
            element.set("duration", _text(timeline.duration))
            element.set("sampleRate", str(timeline.sample_rate))
            ET.SubElement(element, "File", path=timeline.file.path, external=_text(timeline.file.external))
        elif isinstance(timeline, Warps):
            element = ET.SubElement(parent, "Warps")
            self._timeline_attributes(element, timeline)
            element.set("contentTimeUnit", timeline.content_time_unit.value)
            if timeline.content is not None:
                self._timeline(element, timeline.content)
            for warp in timeline.events:
                ET.SubElement(element, "Warp", time=_text(warp.time), contentTime=_text(warp.content_time))
        elif isinstance(timeline, Markers):
            element = ET.SubElement(parent, "Markers")
            self._timeline_attributes(element, timeline)
            for marker in timeline.markers:
                marker_element = ET.SubElement(element, "Marker", time=_text(marker.time), name=marker.name)
                _set(marker_element, "color", marker.color)
        else:
            logger.warning("Skipping unsupported timeline type %s", type(timeline).__name__)

    def _clip(self, parent: ET.Element, clip: Clip):
        element = ET.SubElement(parent, "Clip", time=_text(clip.time), duration=_text(clip.duration))
        _set(element, "playStart", clip.play_start)
        _set(element, "playStop", clip.play_stop)
        _set(element, "loopStart", clip.loop_start)
        _set(element, "loopEnd", clip.loop_end)
        _set(element, "fadeInTime", clip.fade_in_time)
        _set(element, "fadeOutTime", clip.fade_out_time)
        if clip.content_time_unit is not None:
            element.set("contentTimeUnit", clip.content_time_unit.value)
        _set(element, "name", clip.name)
        _set(element, "comment", clip.comment)
        _set(element, "color", clip.color)
        element.set("enable", _text(clip.enable))
        if clip.content is not None:
            self._timeline(element, clip.content)

    def _points(self, parent: ET.Element, points: Points, tag: str):
        element = ET.SubElement(parent, tag)
        self._timeline_attributes(element, points)
        if points.unit is not None:
            element.set("unit", points.unit.value)

        target = points.target
        target_element = ET.SubElement(element, "Target")
        if target.parameter is not None:
            target_element.set("parameter", self._id(target.parameter))
        if target.expression is not None:
            target_element.set("expression", target.expression.value)
        _set(target_element, "channel", target.channel)
        _set(target_element, "key", target.key)
        _set(target_element, "controller", target.controller)

        for point in points.points:
            if isinstance(point, RealPoint):
                point_element = ET.SubElement(element, "RealPoint", time=_text(point.time), value=_text(point.value))
                if point.interpolation is not None:
                    point_element.set("interpolation", point.interpolation.value)
            elif isinstance(point, IntegerPoint):
                ET.SubElement(element, "IntegerPoint", time=_text(point.time), value=str(point.value))
            elif isinstance(point, BoolPoint):
                ET.SubElement(element, "BoolPoint", time=_text(point.time), value=_text(point.value))
            elif isinstance(point, TimeSignaturePoint):
                ET.SubElement(
                    element,
                    "TimeSignaturePoint",
                    time=_text(point.time),
                    numerator=str(point.numerator),
                    denominator=str(point.denominator),
                )


def project_to_xml(project: Project) -> ET.Element:
    return ProjectXmlWriter(project).write()


def metadata_to_xml(metadata: MetaData) -> ET.Element:
    root = ET.Element("MetaData")
    for tag, attribute in METADATA_FIELDS.items():
        value = getattr(metadata, attribute)
        if value is not None:
            ET.SubElement(root, tag).text = value
    return root


def to_xml_bytes(element: ET.Element) -> bytes:
    ET.indent(element)
    return ET.tostring(element, encoding="utf-8", xml_declaration=True)


# ── Reading ─────────────────────────────────────────────────────

class ProjectXmlReader:
    """Builds a :class:`Project` from its XML. One instance per read."""

    def __init__(self, root: ET.Element):
        self.root = root
        self._objects: dict[str, object] = {}
        self._pending: list[tuple[str, Callable[[object], None]]] = []

    def _register(self, element: ET.Element, obj):
        obj_id = element.get("id")
        if obj_id is not None:
            self._objects[obj_id] = obj
        return obj

    def _reference(self, element: ET.Element, attribute: str, setter: Callable[[object], None]):
        ref = element.get(attribute)
        if ref is not None:
            self._pending.append((ref, setter))

    def read(self) -> Project:
        if self.root.tag != "Project":
            raise FormatError(f"Not a DAWproject file, root element is {self.root.tag}")

        project = Project()
        application = self.root.find("Application")
        if application is not None:
            project.application = Application(application.get("name", ""), application.get("version", ""))

        transport = self.root.find("Transport")
        if transport is not None:
            project.transport = self._transport(transport)

        structure = self.root.find("Structure")
        if structure is not None:
            project.structure = [self._track(e) for e in structure.findall("Track")]

        arrangement = self.root.find("Arrangement")
        if arrangement is not None:
            project.arrangement = self._arrangement(arrangement)

        for ref, setter in self._pending:
            obj = self._objects.get(ref)
            if obj is None:
                logger.warning("Unresolved reference: %s", ref)
                continue
            setter(obj)
        return project

    # Parameters

    def _real_parameter(self, element: ET.Element | None) -> RealParameter | None:
        if element is None:
            return None
        parameter = RealParameter(
            value=_float(element, "value"),
            unit=_enum(Unit, element.get("unit"), Unit.LINEAR),
            min=_float(element, "min"),
            max=_float(element, "max"),
            name=element.get("name"),
            parameter_id=_int(element, "parameterID"),
        )
        return self._register(element, parameter)

    def _bool_parameter(self, element: ET.Element | None) -> BoolParameter | None:
        if element is None:
            return None
        return self._register(element, BoolParameter(_bool(element, "value"), element.get("name")))

    def _transport(self, element: ET.Element) -> Transport:
        transport = Transport(tempo=self._real_parameter(element.find("Tempo")))
        signature = element.find("TimeSignature")
        if signature is not None:
            transport.time_signature = self._register(
                signature,
                TimeSignatureParameter(_int(signature, "numerator", 4), _int(signature, "denominator", 4)),
            )
        return transport

    # Structure

    def _track(self, element: ET.Element) -> Track:
        track = Track(
            name=element.get("name", ""),
            color=element.get("color"),
            comment=element.get("comment"),
            content_types=[
                c for c in (_enum(ContentType, v) for v in element.get("contentType", "").split()) if c
            ],
            loaded=_bool(element, "loaded", True),
        )
        self._register(element, track)
        channel = element.find("Channel")
        if channel is not None:
            track.channel = self._channel(channel)
        track.tracks = [self._track(e) for e in element.findall("Track")]
        return track

    def _channel(self, element: ET.Element) -> Channel:
        channel = Channel(
            role=_enum(MixerRole, element.get("role"), MixerRole.REGULAR),
            audio_channels=_int(element, "audioChannels", 2),
            solo=_bool(element, "solo", False),
            volume=self._real_parameter(element.find("Volume")),
            pan=self._real_parameter(element.find("Pan")),
            mute=self._bool_parameter(element.find("Mute")),
        )
        self._register(element, channel)
        self._reference(element, "destination", lambda obj: setattr(channel, "destination", obj))

        devices = element.find("Devices")
        if devices is not None:
            for device_element in devices:
                device = self._device(device_element)
                if device is not None:
                    channel.devices.append(device)

        sends = element.find("Sends")
        if sends is not None:
            for send_element in sends.findall("Send"):
                channel.sends.append(self._send(send_element))
        return channel

    def _send(self, element: ET.Element) -> Send:
        send = Send(
            volume=self._real_parameter(element.find("Volume")) or RealParameter(),
            pan=self._real_parameter(element.find("Pan")),
            enable=self._bool_parameter(element.find("Enable")),
            type=_enum(SendType, element.get("type"), SendType.POST),
            name=element.get("name"),
        )
        self._register(element, send)
        self._reference(element, "destination", lambda obj: setattr(send, "destination", obj))
        return send

    def _device(self, element: ET.Element) -> Device | None:
        device_format = _enum(DeviceFormat, element.tag)
        if device_format is None:
            logger.warning("Skipping unsupported device type %s", element.tag)
            return None
        device = Device(
            format=device_format,
            name=element.get("name", ""),
            device_id=element.get("deviceID"),
            device_name=element.get("deviceName", ""),
            device_vendor=element.get("deviceVendor"),
            device_role=_enum(DeviceRole, element.get("deviceRole"), DeviceRole.AUDIO_FX),
            loaded=_bool(element, "loaded", True),
            enabled=self._bool_parameter(element.find("Enabled")),
        )
        self._register(element, device)
        parameters = element.find("Parameters")
        if parameters is not None:
            device.parameters = [self._real_parameter(e) for e in parameters.findall("RealParameter")]
        state = element.find("State")
        if state is not None:
            device.state = FileReference(state.get("path", ""), _bool(state, "external", False))
        return device

    # Arrangement

    def _arrangement(self, element: ET.Element) -> Arrangement:
        arrangement = Arrangement()
        lanes = element.find("Lanes")
        if lanes is not None:
            arrangement.lanes = self._timeline(lanes)
        markers = element.find("Markers")
        if markers is not None:
            arrangement.markers = self._timeline(markers)
        tempo = element.find("TempoAutomation")
        if tempo is not None:
            arrangement.tempo_automation = self._points(tempo)
        signature = element.find("TimeSignatureAutomation")
        if signature is not None:
            arrangement.time_signature_automation = self._points(signature)
        return arrangement

    def _timeline_attributes(self, element: ET.Element, timeline: Timeline) -> Timeline:
        timeline.time_unit = _enum(TimeUnit, element.get("timeUnit"))
        self._register(element, timeline)
        self._reference(element, "track", lambda obj: setattr(timeline, "track", obj))
        return timeline

    def _timeline(self, element: ET.Element) -> Timeline | None:
        tag = element.tag
        if tag == "Lanes":
            lanes = self._timeline_attributes(element, Lanes())
            lanes.lanes = [t for t in (self._timeline(e) for e in element) if t is not None]
            return lanes
        if tag == "Clips":
            clips = self._timeline_attributes(element, Clips())
            clips.clips = [self._clip(e) for e in element.findall("Clip")]
            return clips
        if tag == "Notes":
            notes = self._timeline_attributes(element, Notes())
            notes.notes = [
                Note(
                    time=_float(e, "time", 0.0),
                    duration=_float(e, "duration", 0.0),
                    channel=_int(e, "channel", 0),
                    key=_int(e, "key", 60),
                    velocity=_float(e, "vel", 0.0),
                    release_velocity=_float(e, "rel", 0.0),
                )
                for e in element.findall("Note")
            ]
            return notes
        if tag == "Points":
            return self._points(element)
        if tag == "Audio":
            audio = self._timeline_attributes(element, Audio())
            audio.algorithm = element.get("algorithm", "raw")
            audio.channels = _int(element, "channels", 2)
            audio.sample_rate = _int(element, "sampleRate", 0)
            audio.duration = _float(element, "duration", 0.0)
            file_element = element.find("File")
            if file_element is not None:
                audio.file = FileReference(file_element.get("path", ""), _bool(file_element, "external", False))
            return audio
        if tag == "Warps":
            warps = self._timeline_attributes(element, Warps())
            warps.content_time_unit = _enum(TimeUnit, element.get("contentTimeUnit"), TimeUnit.SECONDS)
            for child in element:
                if child.tag == "Warp":
                    warps.events.append(Warp(_float(child, "time", 0.0), _float(child, "contentTime", 0.0)))
                elif warps.content is None:
                    warps.content = self._timeline(child)
            return warps
        if tag == "Markers":
            markers = self._timeline_attributes(element, Markers())
            markers.markers = [
                Marker(_float(e, "time", 0.0), e.get("name", ""), e.get("color"))
                for e in element.findall("Marker")
            ]
            return markers

        logger.warning("Skipping unsupported timeline type %s", tag)
        return None

    def _clip(self, element: ET.Element) -> Clip:
        clip = Clip(
            time=_float(element, "time", 0.0),
            duration=_float(element, "duration", 0.0),
            play_start=_float(element, "playStart"),
            play_stop=_float(element, "playStop"),
            loop_start=_float(element, "loopStart"),
            loop_end=_float(element, "loopEnd"),
            fade_in_time=_float(element, "fadeInTime"),
            fade_out_time=_float(element, "fadeOutTime"),
            content_time_unit=_enum(TimeUnit, element.get("contentTimeUnit")),
            name=element.get("name"),
            comment=element.get("comment"),
            color=element.get("color"),
            enable=_bool(element, "enable", True),
        )
        for child in element:
            clip.content = self._timeline(child)
            if clip.content is not None:
                break
        return clip

    def _points(self, element: ET.Element) -> Points:
        points = self._timeline_attributes(element, Points())
        points.unit = _enum(Unit, element.get("unit"))

        target_element = element.find("Target")
        if target_element is not None:
            target = AutomationTarget(
                expression=_enum(ExpressionType, target_element.get("expression")),
                channel=_int(target_element, "channel"),
                key=_int(target_element, "key"),
                controller=_int(target_element, "controller"),
            )
            self._reference(target_element, "parameter", lambda obj: setattr(target, "parameter", obj))
            points.target = target

        for child in element:
            if child.tag == "RealPoint":
                points.points.append(RealPoint(
                    _float(child, "time", 0.0),
                    _float(child, "value", 0.0),
                    _enum(Interpolation, child.get("interpolation")),
                ))
            elif child.tag == "IntegerPoint":
                points.points.append(IntegerPoint(_float(child, "time", 0.0), _int(child, "value", 0)))
            elif child.tag == "BoolPoint":
                points.points.append(BoolPoint(_float(child, "time", 0.0), _bool(child, "value", False)))
            elif child.tag == "TimeSignaturePoint":
                points.points.append(TimeSignaturePoint(
                    _float(child, "time", 0.0),
                    _int(child, "numerator", 4),
                    _int(child, "denominator", 4),
                ))
        return points


def project_from_xml(root: ET.Element) -> Project:
    return ProjectXmlReader(root).read()


def metadata_from_xml(root: ET.Element) -> MetaData:
    metadata = MetaData()
    for tag, attribute in METADATA_FIELDS.items():
        element = root.find(tag)
        if element is not None and element.text:
            setattr(metadata, attribute, element.text)
    return metadata
