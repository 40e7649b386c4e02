"""Tests for spectrum line formatting."""

from __future__ import annotations

import io

import numpy as np
import pytest

from cava_filter.services.output_emitter import OutputEmitter, format_values_line


def test_values_are_truncated_into_four_wide_columns() -> None:
    assert format_values_line([1.9, 100, 0.0, 12345]) == "   1  100    0 12345 \n"


def test_small_negative_values_truncate_to_zero() -> None:
    assert format_values_line([-0.5]) == "   0 \n"


def test_stereo_bars_collapse_to_mono_line() -> None:
    out = io.StringIO()
    emitter = OutputEmitter(out, bars_per_channel=2, channels=2, channels_out=1)

    emitter.emit_frame(np.array([2.0, 4.0, 6.0, 8.0]))

    assert out.getvalue() == "   4    6 \n"
    assert emitter.frames_emitted == 1


def test_stereo_output_keeps_both_halves() -> None:
    out = io.StringIO()
    emitter = OutputEmitter(out, bars_per_channel=2, channels=2, channels_out=2)

    emitter.emit_frame(np.array([2.0, 4.0, 6.0, 8.0]))

    assert out.getvalue() == "   2    4    6    8 \n"


def test_header_repeats_cutoffs_per_output_channel_once() -> None:
    out = io.StringIO()
    emitter = OutputEmitter(out, bars_per_channel=2, channels=2, channels_out=2)

    emitter.emit_header([50.7, 100.2])
    emitter.emit_header([50.7, 100.2])

    assert out.getvalue() == "  50  100   50  100 \n"


def test_header_after_frames_is_rejected() -> None:
    emitter = OutputEmitter(
        io.StringIO(), bars_per_channel=1, channels=1, channels_out=1
    )
    emitter.emit_frame(np.array([1.0]))

    with pytest.raises(RuntimeError):
        emitter.emit_header([60.0])


def test_stereo_output_requires_stereo_input() -> None:
    with pytest.raises(ValueError):
        OutputEmitter(io.StringIO(), bars_per_channel=2, channels=1, channels_out=2)
