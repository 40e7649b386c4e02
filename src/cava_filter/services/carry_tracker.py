"""Fractional sample carry between frames.

Frames ask for ``samples_per_frame`` samples, which is rarely an integer, and
stereo reads must stay whole L/R pairs. Every sample a frame reads above or
below its exact share is booked against ``accumulated_fraction`` and repaid
one channel-group at a time on the last exec of a later frame, so total
consumption never drifts more than a channel-group from the true clock.
"""

from __future__ import annotations

from dataclasses import dataclass

from .frame_scheduler import FramePlan


@dataclass(frozen=True)
class CarryState:
    """Sample budget owed to (positive) or borrowed from (negative) the stream."""

    accumulated_fraction: float = 0.0


@dataclass(frozen=True)
class FrameReads:
    """Read lengths for one frame and the carry left after it."""

    read_lens: tuple[int, ...]
    carry_out: CarryState

    @property
    def total(self) -> int:
        return sum(self.read_lens)


def plan_frame_reads(plan: FramePlan, carry_in: CarryState) -> FrameReads:
    """Return the exec read lengths for the next frame.

    Pure function of the plan and incoming carry; the read loop threads the
    returned ``carry_out`` into the following frame.
    """
    channels = plan.channels
    last_idx = plan.execs_per_frame - 1
    carry = carry_in.accumulated_fraction
    read_lens: list[int] = []
    for read_idx in range(plan.execs_per_frame):
        read_len = plan.samples_per_exec
        if read_idx < plan.samples_remainder:
            read_len += 1

        if channels == 2 and read_len % 2:
            adjust = -1 if read_idx % 2 == 0 else 1
            read_len += adjust
            carry -= adjust

        if read_idx == last_idx:
            carry += plan.sample_fraction_per_frame
            if carry >= channels:
                read_len += channels
                carry -= channels
            elif carry <= -channels and read_len >= 2 * channels:
                read_len -= channels
                carry += channels

        if read_len < channels:
            carry -= channels - read_len
            read_len = channels

        read_lens.append(read_len)
    return FrameReads(read_lens=tuple(read_lens), carry_out=CarryState(carry))
