"""Frame read loop: PCM in, one spectrum line per output frame out.

The loop is single-threaded and blocking. For each frame it plans exec read
lengths from the carried sample budget, reads and transforms each exec, and
emits the weighted frame only when every exec of the frame was read in full.
A short read ends the run and the in-progress frame is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Literal

import numpy as np

from cava_filter.config import StreamConfig

from .carry_tracker import CarryState, plan_frame_reads
from .frame_scheduler import FramePlan, plan_frames
from .output_emitter import OutputEmitter
from .pcm_stream import PcmStreamReader
from .spectrum_accumulator import SpectrumAccumulator, WeightingScheme
from .spectrum_transform import SpectrumTransform

StreamEndReason = Literal["end_of_stream", "read_error"]
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamRunResult:
    """Outcome of a read loop run."""

    frames_emitted: int
    samples_consumed: int
    end_reason: StreamEndReason
    error: OSError | None = None
    carry: CarryState = CarryState()

    @property
    def ok(self) -> bool:
        return self.end_reason == "end_of_stream"


def run_frames(
    reader: PcmStreamReader,
    transform: SpectrumTransform,
    emitter: OutputEmitter,
    plan: FramePlan,
    *,
    scheme: WeightingScheme = "proportional",
    max_frames: int | None = None,
) -> StreamRunResult:
    """Process frames until the stream ends or ``max_frames`` are emitted."""
    buffer = np.zeros(plan.max_read_len, dtype=np.float64)
    accumulator = SpectrumAccumulator(transform.output_len, scheme)
    carry = CarryState()
    samples_consumed = 0
    frames = 0
    while max_frames is None or frames < max_frames:
        reads = plan_frame_reads(plan, carry)
        accumulator.start_frame(reads.read_lens)
        for read_len in reads.read_lens:
            samples = reader.read(read_len)
            samples_consumed += samples.shape[0]
            if samples.shape[0] < read_len:
                return _finish(reader, frames, samples_consumed, carry)
            np.copyto(buffer[:read_len], samples)
            accumulator.add(transform.execute(buffer, read_len))
        carry = reads.carry_out
        emitter.emit_frame(accumulator.finish_frame())
        frames += 1
    logger.info("Stopped after frame limit of %d", frames)
    return StreamRunResult(
        frames_emitted=frames,
        samples_consumed=samples_consumed,
        end_reason="end_of_stream",
        carry=carry,
    )


def process_stream(
    reader: PcmStreamReader,
    emitter: OutputEmitter,
    config: StreamConfig,
    transform_factory: Callable[[int], AbstractContextManager[SpectrumTransform]],
    *,
    print_cutoffs: bool = False,
    scheme: WeightingScheme = "proportional",
    max_frames: int | None = None,
) -> StreamRunResult:
    """Plan the run, hold one transform for its lifetime, and run the loop.

    ``transform_factory`` receives the largest exec length the plan can
    request and returns a context manager yielding the transform; it is
    entered once and exited once whatever way the loop ends.
    """
    plan = plan_frames(config)
    with transform_factory(plan.max_read_len) as transform:
        if print_cutoffs:
            emitter.emit_header(transform.cutoff_frequencies)
        result = run_frames(
            reader,
            transform,
            emitter,
            plan,
            scheme=scheme,
            max_frames=max_frames,
        )
    logger.info(
        "Stream finished (%s): %d frames, %d samples, carry %.3f",
        result.end_reason,
        result.frames_emitted,
        result.samples_consumed,
        result.carry.accumulated_fraction,
    )
    return result


def _finish(
    reader: PcmStreamReader,
    frames: int,
    samples_consumed: int,
    carry: CarryState,
) -> StreamRunResult:
    if reader.error is not None:
        return StreamRunResult(
            frames_emitted=frames,
            samples_consumed=samples_consumed,
            end_reason="read_error",
            error=reader.error,
            carry=carry,
        )
    logger.debug("End of input after %d frames", frames)
    return StreamRunResult(
        frames_emitted=frames,
        samples_consumed=samples_consumed,
        end_reason="end_of_stream",
        carry=carry,
    )
