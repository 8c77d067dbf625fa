"""Exception types raised while reading or writing projects."""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for all conversion failures.

    ``context`` names the chunk, track or device that failed and is appended
    to the message.
    """

    def __init__(self, message: str, context: str | None = None):
        self.message = message
        self.context = context
        super().__init__(f"{message} ({context})" if context else message)


class FormatError(ConversionError):
    """Malformed project text, e.g. a missing root or an unclosed chunk."""


class UnsupportedFormat(ConversionError):
    """Unknown preset magic, plugin kind or clip source."""


class MalformedHierarchy(ConversionError):
    """Folder markers close more levels than were opened."""


class MalformedMidi(ConversionError):
    """Unparsable MIDI event or a note-off without a matching note-on."""


class TruncatedDataError(ConversionError, OSError):
    """A preset stream ended before the announced number of bytes."""


class ConversionCancelled(ConversionError):
    """The user canceled the running conversion."""
