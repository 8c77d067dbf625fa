"""Tempo map for converting between seconds and beats.

The map is a list of tempo changes. From each change the tempo is either
held or ramps linearly to the next change, as flagged on the change itself.
After the last change the tempo stays constant.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from reaperconverter.core.models import Interpolation, RealPoint


@dataclass
class TempoChange:
    time: float
    tempo: float
    is_linear: bool = False


class TempoTimeline:
    """Converts positions between seconds and beats along a tempo map."""

    def __init__(self, changes: list[TempoChange] | None, default_tempo: float):
        points = sorted(changes or [], key=lambda c: c.time)
        if not points or points[0].time > 0:
            points.insert(0, TempoChange(0.0, default_tempo, False))
        self.changes = points
        self.default_tempo = default_tempo

    @property
    def is_constant(self) -> bool:
        return len(self.changes) == 1

    def tempo_at(self, seconds: float) -> float:
        """Effective tempo at the given position in seconds."""
        previous = self.changes[0]
        for change in self.changes[1:]:
            if change.time > seconds:
                if previous.is_linear:
                    return _interpolate(previous, change, seconds)
                return previous.tempo
            previous = change
        return previous.tempo

    def beats_per_second(self, seconds: float) -> float:
        return self.tempo_at(seconds) / 60.0

    # ── Seconds to beats ────────────────────────────────────────

    def seconds_to_beats(self, seconds: float) -> float:
        if self.is_constant:
            return seconds * self.changes[0].tempo / 60.0

        beats = 0.0
        previous = self.changes[0]
        for change in self.changes[1:]:
            if change.time >= seconds:
                end_tempo = _interpolate(previous, change, seconds) if previous.is_linear else previous.tempo
                return beats + _segment_beats(previous.tempo, end_tempo, seconds - previous.time)
            end_tempo = change.tempo if previous.is_linear else previous.tempo
            beats += _segment_beats(previous.tempo, end_tempo, change.time - previous.time)
            previous = change

        return beats + (seconds - previous.time) * previous.tempo / 60.0

    # ── Beats to seconds ────────────────────────────────────────

    def beats_to_seconds(self, beats: float) -> float:
        if self.is_constant:
            return beats * 60.0 / self.changes[0].tempo

        position = 0.0
        previous = self.changes[0]
        for change in self.changes[1:]:
            duration = change.time - previous.time
            end_tempo = change.tempo if previous.is_linear else previous.tempo
            segment = _segment_beats(previous.tempo, end_tempo, duration)
            if position + segment >= beats:
                remaining = beats - position
                return previous.time + _solve_segment(previous.tempo, end_tempo, duration, remaining)
            position += segment
            previous = change

        return previous.time + (beats - position) * 60.0 / previous.tempo


def _interpolate(start: TempoChange, end: TempoChange, seconds: float) -> float:
    duration = end.time - start.time
    if duration <= 0:
        return end.tempo
    return start.tempo + (end.tempo - start.tempo) * (seconds - start.time) / duration


def _segment_beats(start_tempo: float, end_tempo: float, duration: float) -> float:
    # Trapezoid, exact for a linear ramp
    return (start_tempo + end_tempo) / 2.0 / 60.0 * duration


def _solve_segment(start_tempo: float, end_tempo: float, duration: float, beats: float) -> float:
    """Seconds into a segment after which ``beats`` beats have passed.

    Solves ``a * t^2 + b * t - beats = 0`` with the beats per second of the
    segment start as ``b`` and half the ramp slope as ``a``.
    """
    start_bps = start_tempo / 60.0
    end_bps = end_tempo / 60.0
    if duration <= 0:
        return 0.0
    a = 0.5 * (end_bps - start_bps) / duration
    b = start_bps
    if abs(a) < 1e-12:
        return beats / b
    discriminant = b * b + 4.0 * a * beats
    return (-b + math.sqrt(max(0.0, discriminant))) / (2.0 * a)


class TimeBase:
    """Unit bookkeeping for one conversion.

    Holds whether the source arrangement and its envelopes are in beats and
    whether the destination expects beats, and converts through the tempo
    map accordingly.
    """

    def __init__(
        self,
        timeline: TempoTimeline,
        source_is_beats: bool = False,
        source_is_envelope_beats: bool = False,
        destination_is_beats: bool = False,
    ):
        self.timeline = timeline
        self.source_is_beats = source_is_beats
        self.source_is_envelope_beats = source_is_envelope_beats
        self.destination_is_beats = destination_is_beats

    def convert(self, value: float, is_envelope: bool = False) -> float:
        """Convert a source position into the destination unit."""
        source_beats = self.source_is_envelope_beats if is_envelope else self.source_is_beats
        if source_beats == self.destination_is_beats:
            return value
        if self.destination_is_beats:
            return self.timeline.seconds_to_beats(value)
        return self.timeline.beats_to_seconds(value)

    def convert_duration(self, start: float, duration: float, is_envelope: bool = False) -> float:
        """Convert a length that starts at ``start`` (source unit)."""
        return self.convert(start + duration, is_envelope) - self.convert(start, is_envelope)

    def to_seconds(self, value: float, is_beats: bool) -> float:
        return self.timeline.beats_to_seconds(value) if is_beats else value

    def to_beats(self, value: float, is_beats: bool) -> float:
        return value if is_beats else self.timeline.seconds_to_beats(value)


def tempo_changes_from_points(
    points: list, in_beats: bool = False, default_tempo: float | None = None
) -> list[TempoChange]:
    """Build tempo changes from DAWproject tempo points.

    A point's interpolation describes the ramp that leads to it, so the
    linear flag of a change is taken from its successor. Points positioned
    in beats are converted to seconds along the map they describe. Beats
    before the first point run at ``default_tempo`` when it is given.
    """
    real_points = sorted((p for p in points if isinstance(p, RealPoint)), key=lambda p: p.time)
    changes: list[TempoChange] = []
    for index, point in enumerate(real_points):
        following = real_points[index + 1] if index + 1 < len(real_points) else None
        is_linear = following is not None and following.interpolation == Interpolation.LINEAR

        time = point.time
        if in_beats and changes:
            previous = changes[-1]
            beats = point.time - real_points[index - 1].time
            # Beats of a linear ramp are its duration times the average tempo
            average = (previous.tempo + point.value) / 2.0 if previous.is_linear else previous.tempo
            time = previous.time + beats * 60.0 / average
        elif in_beats:
            time = point.time * 60.0 / (default_tempo or point.value) if point.time > 0 else 0.0
        changes.append(TempoChange(time, point.value, is_linear))
    return changes
