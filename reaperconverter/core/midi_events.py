"""MIDI event lines of REAPER MIDI items.

A MIDI source chunk contains lines ``E <delta> <status> <data1> <data2>``
with all values except the delta in hex. Note-on and note-off events are
paired into notes, all other channel messages become automation points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from reaperconverter.core.chunk import Node
from reaperconverter.core.constants import SOURCE_HASDATA
from reaperconverter.core.errors import MalformedMidi
from reaperconverter.core.models import (
    AutomationTarget,
    ExpressionType,
    IntegerPoint,
    Note,
    Points,
    TimeUnit,
    Unit,
)
from reaperconverter.utils.config import TICKS_PER_QUARTER_NOTE

logger = logging.getLogger(__name__)

NOTE_OFF = 0x80
NOTE_ON = 0x90
POLY_PRESSURE = 0xA0
CONTROLLER = 0xB0
PROGRAM_CHANGE = 0xC0
CHANNEL_PRESSURE = 0xD0
PITCH_BEND = 0xE0

_EXPRESSIONS = {
    POLY_PRESSURE: ExpressionType.POLY_PRESSURE,
    CONTROLLER: ExpressionType.CHANNEL_CONTROLLER,
    PROGRAM_CHANGE: ExpressionType.PROGRAM_CHANGE,
    CHANNEL_PRESSURE: ExpressionType.CHANNEL_PRESSURE,
    PITCH_BEND: ExpressionType.PITCH_BEND,
}


@dataclass
class MidiEvent:
    position: int = 0
    offset: int = 0
    code: int = 0
    channel: int = 0
    data1: int = 0
    data2: int = 0

    @classmethod
    def from_node(cls, node: Node, position: int) -> MidiEvent | None:
        """Parse an event line, ``None`` if the node is no event."""
        if node.name.upper() != "E" or len(node.parameters) < 4:
            return None
        try:
            offset = int(node.parameters[0])
            status = int(node.parameters[1], 16)
            data1 = int(node.parameters[2], 16)
            data2 = int(node.parameters[3], 16)
        except (TypeError, ValueError) as e:
            raise MalformedMidi(f"Unparsable MIDI event: {node.line or node.parameters}") from e
        return cls(position + offset, offset, status & 0xF0, status & 0x0F, data1, data2)

    def to_node(self) -> Node:
        return Node.leaf(
            "E",
            str(self.offset),
            "%02x" % (self.code + self.channel),
            "%02x" % self.data1,
            "%02x" % self.data2,
        )


@dataclass
class MidiContent:
    """Notes and expression envelopes decoded from one MIDI source."""
    notes: list[Note]
    envelopes: list[Points]
    length: float
    ppq: int


def read_ppq(source: Node) -> int:
    """Ticks per quarter note from ``HASDATA 1 <ppq> QN``, -1 if absent."""
    node = source.child(SOURCE_HASDATA)
    if node is None or len(node.parameters) != 3 or node.parameters[0] != "1":
        return -1
    try:
        return int(node.parameters[1])
    except ValueError:
        return -1


def decode_midi(source: Node, lenient: bool = False) -> MidiContent:
    """Decode all events of a MIDI source chunk."""
    ppq = read_ppq(source)
    if ppq <= 0:
        return MidiContent([], [], 0.0, ppq)

    events: list[MidiEvent] = []
    position = 0
    for node in source.children or []:
        event = MidiEvent.from_node(node, position)
        if event is None:
            continue
        position = event.position
        events.append(event)

    notes = _pair_notes(events, ppq, lenient)
    envelopes = _collect_envelopes(events, ppq)
    return MidiContent(notes, envelopes, position / ppq, ppq)


def _pair_notes(events: list[MidiEvent], ppq: int, lenient: bool) -> list[Note]:
    notes: list[Note] = []
    pending: list[MidiEvent] = []
    for event in events:
        if event.code == NOTE_ON:
            pending.append(event)
        elif event.code == NOTE_OFF:
            start = next(
                (e for e in pending if e.channel == event.channel and e.data1 == event.data1),
                None,
            )
            if start is None:
                if not lenient:
                    raise MalformedMidi(
                        f"Note-off without note-on: channel {event.channel}, key {event.data1}"
                    )
                logger.warning(
                    "Skipping note-off without note-on (channel %d, key %d).",
                    event.channel,
                    event.data1,
                )
                continue
            pending.remove(start)
            notes.append(Note(
                time=start.position / ppq,
                duration=(event.position - start.position) / ppq,
                channel=start.channel,
                key=start.data1,
                velocity=start.data2 / 127.0,
                release_velocity=event.data2 / 127.0,
            ))
    return notes


def _collect_envelopes(events: list[MidiEvent], ppq: int) -> list[Points]:
    envelopes: dict[tuple, Points] = {}
    for event in events:
        expression = _EXPRESSIONS.get(event.code)
        if expression is None:
            continue

        key = controller = None
        if event.code == POLY_PRESSURE:
            key, value = event.data1, event.data2
        elif event.code == CONTROLLER:
            controller, value = event.data1, event.data2
        elif event.code == PITCH_BEND:
            value = event.data1 + event.data2 * 128
        else:
            value = event.data1

        lookup = (expression, event.channel, key if key is not None else controller)
        points = envelopes.get(lookup)
        if points is None:
            target = AutomationTarget(
                expression=expression, channel=event.channel, key=key, controller=controller
            )
            points = Points(time_unit=TimeUnit.BEATS, target=target, unit=Unit.PERCENT)
            envelopes[lookup] = points
        points.points.append(IntegerPoint(event.position / ppq, value))
    return list(envelopes.values())


def encode_midi(source: Node, notes: list[Note], duration: float, ppq: int = TICKS_PER_QUARTER_NOTE):
    """Append ``HASDATA`` and the event lines for the notes to a MIDI source chunk.

    Note times and the duration are in beats.
    """
    source.add_leaf(SOURCE_HASDATA, "1", str(ppq), "QN")

    events: list[MidiEvent] = []
    for note in notes:
        start = round(note.time * ppq)
        end = round((note.time + note.duration) * ppq)
        events.append(MidiEvent(start, 0, NOTE_ON, note.channel, note.key, int(note.velocity * 127)))
        events.append(MidiEvent(end, 0, NOTE_OFF, note.channel, note.key, int(note.release_velocity * 127)))

    events.sort(key=lambda e: e.position)

    # Trailing event keeps the item length when the last note ends early
    events.append(MidiEvent(round(duration * ppq), 0, CONTROLLER, 0, 0, 0))

    position = 0
    for event in events:
        event.offset = max(0, event.position - position)
        position = max(position, event.position)
        source.add(event.to_node())
