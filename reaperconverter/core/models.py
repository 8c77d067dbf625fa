"""Dataclasses for the DAWproject object graph.

Both converters build or consume these objects. Fields that point to other
objects of the graph (send destinations, automation targets) are excluded
from comparison and repr.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Unit(Enum):
    LINEAR = "linear"
    NORMALIZED = "normalized"
    PERCENT = "percent"
    DECIBEL = "decibel"
    HERTZ = "hertz"
    SEMITONES = "semitones"
    SECONDS = "seconds"
    BEATS = "beats"
    BPM = "bpm"


class TimeUnit(Enum):
    BEATS = "beats"
    SECONDS = "seconds"


class Interpolation(Enum):
    HOLD = "hold"
    LINEAR = "linear"


class MixerRole(Enum):
    REGULAR = "regular"
    MASTER = "master"
    EFFECT_TRACK = "effect"
    SUB_MIX = "submix"
    VCA = "vca"


class ContentType(Enum):
    AUDIO = "audio"
    AUTOMATION = "automation"
    NOTES = "notes"
    VIDEO = "video"
    MARKERS = "markers"
    TRACKS = "tracks"


class DeviceRole(Enum):
    INSTRUMENT = "instrument"
    NOTE_FX = "noteFX"
    AUDIO_FX = "audioFX"
    ANALYZER = "analyzer"


class SendType(Enum):
    PRE = "pre"
    POST = "post"


class ExpressionType(Enum):
    GAIN = "gain"
    PAN = "pan"
    TRANSPOSE = "transpose"
    TIMBRE = "timbre"
    FORMANT = "formant"
    PRESSURE = "pressure"
    CHANNEL_CONTROLLER = "channelController"
    CHANNEL_PRESSURE = "channelPressure"
    POLY_PRESSURE = "polyPressure"
    PITCH_BEND = "pitchBend"
    PROGRAM_CHANGE = "programChange"


class DeviceFormat(Enum):
    """XML element name of each plugin kind."""
    VST2 = "Vst2Plugin"
    VST3 = "Vst3Plugin"
    CLAP = "ClapPlugin"


# ── Parameters ──────────────────────────────────────────────────

@dataclass(eq=False)
class RealParameter:
    value: float | None = None
    unit: Unit = Unit.LINEAR
    min: float | None = None
    max: float | None = None
    name: str | None = None
    parameter_id: int | None = None


@dataclass(eq=False)
class BoolParameter:
    value: bool | None = None
    name: str | None = None


@dataclass(eq=False)
class TimeSignatureParameter:
    numerator: int = 4
    denominator: int = 4


@dataclass
class FileReference:
    path: str = ""
    external: bool = False


# ── Mixer ───────────────────────────────────────────────────────

@dataclass(eq=False)
class Device:
    format: DeviceFormat = DeviceFormat.VST2
    name: str = ""
    device_id: str | None = None
    device_name: str = ""
    device_vendor: str | None = None
    device_role: DeviceRole = DeviceRole.AUDIO_FX
    loaded: bool = True
    enabled: BoolParameter | None = None
    state: FileReference | None = None
    parameters: list[RealParameter] = field(default_factory=list)


@dataclass(eq=False)
class Send:
    volume: RealParameter = field(default_factory=RealParameter)
    pan: RealParameter | None = None
    enable: BoolParameter | None = None
    type: SendType = SendType.POST
    name: str | None = None
    destination: Channel | None = field(default=None, repr=False)


@dataclass(eq=False)
class Channel:
    role: MixerRole = MixerRole.REGULAR
    audio_channels: int = 2
    volume: RealParameter | None = None
    pan: RealParameter | None = None
    mute: BoolParameter | None = None
    solo: bool = False
    devices: list[Device] = field(default_factory=list)
    sends: list[Send] = field(default_factory=list)
    destination: Channel | None = field(default=None, repr=False)


@dataclass(eq=False)
class Track:
    """A track, or a folder when it holds child tracks."""
    name: str = ""
    color: str | None = None
    comment: str | None = None
    content_types: list[ContentType] = field(default_factory=list)
    loaded: bool = True
    channel: Channel | None = None
    tracks: list[Track] = field(default_factory=list)

    @property
    def is_folder(self) -> bool:
        return bool(self.tracks) or ContentType.TRACKS in self.content_types


# ── Timelines ───────────────────────────────────────────────────

@dataclass(eq=False)
class Timeline:
    time_unit: TimeUnit | None = None
    track: Track | None = field(default=None, repr=False)


@dataclass
class RealPoint:
    time: float = 0.0
    value: float = 0.0
    interpolation: Interpolation | None = None


@dataclass
class IntegerPoint:
    time: float = 0.0
    value: int = 0


@dataclass
class BoolPoint:
    time: float = 0.0
    value: bool = False


@dataclass
class TimeSignaturePoint:
    time: float = 0.0
    numerator: int = 4
    denominator: int = 4


@dataclass(eq=False)
class AutomationTarget:
    parameter: RealParameter | BoolParameter | None = field(default=None, repr=False)
    expression: ExpressionType | None = None
    channel: int | None = None
    key: int | None = None
    controller: int | None = None


@dataclass(eq=False)
class Points(Timeline):
    target: AutomationTarget = field(default_factory=AutomationTarget)
    unit: Unit | None = None
    points: list = field(default_factory=list)


@dataclass
class Note:
    time: float = 0.0
    duration: float = 0.0
    channel: int = 0
    key: int = 60
    velocity: float = 0.0
    release_velocity: float = 0.0


@dataclass(eq=False)
class Notes(Timeline):
    notes: list[Note] = field(default_factory=list)


@dataclass(eq=False)
class Audio(Timeline):
    file: FileReference = field(default_factory=FileReference)
    algorithm: str = "raw"
    channels: int = 2
    sample_rate: int = 0
    duration: float = 0.0


@dataclass
class Warp:
    time: float = 0.0
    content_time: float = 0.0


@dataclass(eq=False)
class Warps(Timeline):
    content: Timeline | None = None
    content_time_unit: TimeUnit = TimeUnit.SECONDS
    events: list[Warp] = field(default_factory=list)


@dataclass(eq=False)
class Clip:
    time: float = 0.0
    duration: float = 0.0
    play_start: float | None = None
    play_stop: float | None = None
    loop_start: float | None = None
    loop_end: float | None = None
    fade_in_time: float | None = None
    fade_out_time: float | None = None
    content_time_unit: TimeUnit | None = None
    name: str | None = None
    comment: str | None = None
    color: str | None = None
    enable: bool = True
    content: Timeline | None = None


@dataclass(eq=False)
class Clips(Timeline):
    clips: list[Clip] = field(default_factory=list)


@dataclass(eq=False)
class Lanes(Timeline):
    lanes: list[Timeline] = field(default_factory=list)


@dataclass
class Marker:
    time: float = 0.0
    name: str = ""
    color: str | None = None


@dataclass(eq=False)
class Markers(Timeline):
    markers: list[Marker] = field(default_factory=list)


# ── Project ─────────────────────────────────────────────────────

@dataclass
class Application:
    name: str = ""
    version: str = ""


@dataclass(eq=False)
class Transport:
    tempo: RealParameter | None = None
    time_signature: TimeSignatureParameter | None = None


@dataclass(eq=False)
class Arrangement:
    lanes: Lanes = field(default_factory=Lanes)
    markers: Markers | None = None
    tempo_automation: Points | None = None
    time_signature_automation: Points | None = None


@dataclass(eq=False)
class Project:
    application: Application = field(default_factory=Application)
    transport: Transport = field(default_factory=Transport)
    structure: list[Track] = field(default_factory=list)
    arrangement: Arrangement = field(default_factory=Arrangement)


@dataclass
class MetaData:
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    original_artist: str | None = None
    composer: str | None = None
    songwriter: str | None = None
    producer: str | None = None
    arranger: str | None = None
    year: str | None = None
    genre: str | None = None
    copyright: str | None = None
    website: str | None = None
    comment: str | None = None
