"""Combine per-exec transform outputs into one bar vector per frame."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

import numpy as np
import numpy.typing as npt

from .carry_tracker import CarryState, plan_frame_reads
from .frame_scheduler import FramePlan

WeightingScheme = Literal["proportional", "uniform"]
WEIGHTING_SCHEMES: tuple[WeightingScheme, ...] = ("proportional", "uniform")
FrameResult = npt.NDArray[np.float64]


def exec_weights(
    read_lens: Sequence[int],
    scheme: WeightingScheme = "proportional",
) -> list[float]:
    """Return one weight per exec; weights always sum to 1.

    ``proportional`` weights each exec by its share of the samples the frame
    actually read. ``uniform`` gives every exec ``1 / execs``.
    """
    count = len(read_lens)
    if count == 0:
        raise ValueError("a frame needs at least one exec")
    if scheme == "uniform":
        return [1.0 / count] * count
    if scheme != "proportional":
        raise ValueError(f"unknown weighting scheme: {scheme!r}")
    total = float(sum(read_lens))
    if total <= 0.0:
        return [1.0 / count] * count
    return [read_len / total for read_len in read_lens]


class SpectrumAccumulator:
    """Weighted running sum of exec outputs for the frame in progress."""

    def __init__(self, output_len: int, scheme: WeightingScheme = "proportional"):
        if scheme not in WEIGHTING_SCHEMES:
            raise ValueError(f"unknown weighting scheme: {scheme!r}")
        self.output_len = output_len
        self.scheme = scheme
        self._frame: FrameResult = np.zeros(output_len, dtype=np.float64)
        self._weights: list[float] = []
        self._next = 0

    def start_frame(self, read_lens: Sequence[int]) -> None:
        """Reset for a new frame whose execs will read ``read_lens``."""
        self._frame = np.zeros(self.output_len, dtype=np.float64)
        self._weights = exec_weights(read_lens, self.scheme)
        self._next = 0

    def add(self, bars: npt.ArrayLike) -> None:
        """Fold the next exec's bars into the frame."""
        if self._next >= len(self._weights):
            raise RuntimeError("more exec results than planned for this frame")
        values = np.asarray(bars, dtype=np.float64)
        if values.shape != (self.output_len,):
            raise ValueError(
                f"expected {self.output_len} bars, got shape {values.shape}"
            )
        self._frame += self._weights[self._next] * values
        self._next += 1

    @property
    def complete(self) -> bool:
        return bool(self._weights) and self._next == len(self._weights)

    def finish_frame(self) -> FrameResult:
        """Return the accumulated frame; every planned exec must be added."""
        if not self.complete:
            raise RuntimeError(
                f"frame incomplete: {self._next} of {len(self._weights)} execs"
            )
        frame = self._frame
        self._frame = np.zeros(self.output_len, dtype=np.float64)
        self._weights = []
        self._next = 0
        return frame


def advance_frame(
    plan: FramePlan,
    carry_in: CarryState,
    exec_results: Sequence[npt.ArrayLike],
    *,
    scheme: WeightingScheme = "proportional",
) -> tuple[CarryState, FrameResult]:
    """Plan one frame's reads from ``carry_in`` and combine its exec results.

    ``exec_results`` must hold one bar vector per exec, in read order, for
    the read lengths implied by ``carry_in``.
    """
    reads = plan_frame_reads(plan, carry_in)
    if len(exec_results) != len(reads.read_lens):
        raise ValueError(
            f"expected {len(reads.read_lens)} exec results, got {len(exec_results)}"
        )
    first = np.asarray(exec_results[0], dtype=np.float64)
    accumulator = SpectrumAccumulator(first.shape[0], scheme)
    accumulator.start_frame(reads.read_lens)
    for bars in exec_results:
        accumulator.add(bars)
    return reads.carry_out, accumulator.finish_frame()


def collapse_channels(
    frame: FrameResult,
    *,
    bars_per_channel: int,
    channels: int,
    channels_out: int,
) -> FrameResult:
    """Average left and right halves when stereo bars are shown as mono."""
    if channels == 2 and channels_out == 1:
        return (frame[:bars_per_channel] + frame[bars_per_channel:]) / 2.0
    return frame
