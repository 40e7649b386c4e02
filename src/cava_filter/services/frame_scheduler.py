"""Per-frame exec planning for fractional output frame rates."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from cava_filter.config import StreamConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FramePlan:
    """Fixed exec layout shared by every frame of a run.

    The leading ``samples_remainder`` execs read one sample more than
    ``samples_per_exec``. ``sample_fraction_per_frame`` is the part of
    ``samples_per_frame`` that no integer read can cover; it is carried
    between frames.
    """

    channels: int
    samples_per_frame: float
    execs_per_frame: int
    samples_per_exec: int
    samples_remainder: int
    sample_fraction_per_frame: float

    @property
    def max_read_len(self) -> int:
        """Upper bound on any single exec read, used to size buffers."""
        # +1 remainder or parity, +1 parity, +1 channel-group released carry
        return max(self.channels, self.samples_per_exec + 2 + self.channels)

    @property
    def is_oversampled(self) -> bool:
        """True when a frame holds less than one channel-group of input."""
        return self.samples_per_frame < self.channels


def plan_frames(config: StreamConfig) -> FramePlan:
    """Compute the exec plan for ``config``.

    ``execs_per_frame`` reserves one channel-group of slack below the exec
    capacity so parity and carry adjustments never overflow a read.
    """
    samples_per_frame = config.samples_per_frame
    execs_per_frame = max(
        1, math.ceil((samples_per_frame + config.channels) / config.exec_capacity)
    )
    samples_per_exec = math.floor(samples_per_frame / execs_per_frame)
    samples_remainder = int(samples_per_frame - execs_per_frame * samples_per_exec)
    plan = FramePlan(
        channels=config.channels,
        samples_per_frame=samples_per_frame,
        execs_per_frame=execs_per_frame,
        samples_per_exec=samples_per_exec,
        samples_remainder=samples_remainder,
        sample_fraction_per_frame=samples_per_frame - math.floor(samples_per_frame),
    )
    if plan.is_oversampled:
        logger.warning(
            "Framerate %.3f exceeds sample rate %d; "
            "each frame reads one channel-group.",
            config.framerate,
            config.sample_rate,
        )
    logger.debug(
        "Frame plan: %.4f samples/frame, %d execs of %d (+1 on %d), fraction %.4f",
        plan.samples_per_frame,
        plan.execs_per_frame,
        plan.samples_per_exec,
        plan.samples_remainder,
        plan.sample_fraction_per_frame,
    )
    return plan
