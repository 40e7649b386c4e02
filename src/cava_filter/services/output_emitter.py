"""Text output of band cutoffs and per-frame bar heights."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TextIO

import numpy as np

from .spectrum_accumulator import FrameResult, collapse_channels


def format_values_line(values: Iterable[float]) -> str:
    """Format values as truncated integers in 4-wide space-padded columns."""
    return "".join(f"{int(value):4d} " for value in values) + "\n"


class OutputEmitter:
    """Write the optional cutoff header and one line per finished frame."""

    def __init__(
        self,
        out: TextIO,
        *,
        bars_per_channel: int,
        channels: int,
        channels_out: int,
    ) -> None:
        if channels_out not in (1, 2):
            raise ValueError(f"channels_out must be 1 or 2, got {channels_out}")
        if channels_out > channels:
            raise ValueError("stereo output needs stereo input")
        self._out = out
        self.bars_per_channel = bars_per_channel
        self.channels = channels
        self.channels_out = channels_out
        self.frames_emitted = 0
        self._header_written = False

    def emit_header(self, cutoffs: Sequence[float]) -> None:
        """Write cutoff frequencies once, repeated for each output channel."""
        if self._header_written:
            return
        if self.frames_emitted:
            raise RuntimeError("cutoff header must precede frame lines")
        self._out.write(format_values_line(list(cutoffs) * self.channels_out))
        self._header_written = True

    def emit_frame(self, frame: FrameResult) -> None:
        values = collapse_channels(
            np.asarray(frame, dtype=np.float64),
            bars_per_channel=self.bars_per_channel,
            channels=self.channels,
            channels_out=self.channels_out,
        )
        self._out.write(format_values_line(values.tolist()))
        self.frames_emitted += 1
