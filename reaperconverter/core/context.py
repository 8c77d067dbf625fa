"""Options and cancellation of a single conversion run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from reaperconverter.core.errors import ConversionCancelled


def _never() -> bool:
    return False


@dataclass
class ConversionContext:
    is_cancelled: Callable[[], bool] = field(default=_never, repr=False)
    lenient_midi: bool = False
    # Keep audio files external instead of storing them in the container
    do_not_compress_audio: bool = False

    def check_cancelled(self):
        if self.is_cancelled():
            raise ConversionCancelled("Canceled.")
