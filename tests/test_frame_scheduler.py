"""Tests for stream config validation and per-frame exec planning."""

from __future__ import annotations

import logging
import math

import pytest

from cava_filter.config import ConfigError, StreamConfig
from cava_filter.services.frame_scheduler import plan_frames


def test_integer_frame_fits_one_exec() -> None:
    plan = plan_frames(StreamConfig(44_100, 2, 25.0, 4096))

    assert plan.samples_per_frame == 3528.0
    assert plan.execs_per_frame == 1
    assert plan.samples_per_exec == 3528
    assert plan.samples_remainder == 0
    assert plan.sample_fraction_per_frame == 0.0


def test_integer_frame_split_across_execs() -> None:
    plan = plan_frames(StreamConfig(44_100, 2, 30.0, 1024))

    assert plan.samples_per_frame == 2940.0
    assert plan.execs_per_frame == 3
    assert plan.samples_per_exec == 980
    assert plan.samples_remainder == 0
    assert plan.sample_fraction_per_frame == 0.0


def test_fractional_mono_frame() -> None:
    plan = plan_frames(StreamConfig(44_100, 1, 24.0, 1024))

    assert plan.samples_per_frame == 1837.5
    assert plan.execs_per_frame == 2
    assert plan.samples_per_exec == 918
    assert plan.samples_remainder == 1
    assert plan.sample_fraction_per_frame == pytest.approx(0.5)


def test_exec_count_leaves_a_channel_group_of_slack() -> None:
    # 1022 stereo samples plus one channel-group exactly fills 1024
    plan = plan_frames(StreamConfig(511, 2, 1.0, 1024))
    assert plan.execs_per_frame == 1

    plan = plan_frames(StreamConfig(512, 2, 1.0, 1024))
    assert plan.execs_per_frame == 2


@pytest.mark.parametrize(
    ("sample_rate", "channels", "framerate", "capacity"),
    [
        (44_100, 2, 25.0, 1024),
        (44_100, 2, 24.0, 1024),
        (44_100, 2, 29.97, 1024),
        (48_000, 2, 60.0, 256),
        (44_100, 1, 23.976, 512),
        (8_000, 1, 7.0, 100),
        (22_050, 2, 0.5, 4096),
        (96_000, 2, 144.0, 1024),
    ],
)
def test_plan_bounds_hold(
    sample_rate: int, channels: int, framerate: float, capacity: int
) -> None:
    plan = plan_frames(StreamConfig(sample_rate, channels, framerate, capacity))
    spf = plan.samples_per_frame
    execs = plan.execs_per_frame
    spe = plan.samples_per_exec

    assert execs >= 1
    assert execs * spe <= spf <= execs * (spe + 1)
    assert 0 <= plan.samples_remainder < execs
    assert 0.0 <= plan.sample_fraction_per_frame < 1.0
    assert math.isclose(
        execs * spe + plan.samples_remainder + plan.sample_fraction_per_frame,
        spf,
        abs_tol=1e-6,
    )
    assert spe + 1 + channels <= plan.max_read_len


def test_framerate_above_sample_rate_is_accepted_with_warning(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        plan = plan_frames(StreamConfig(10, 1, 100.0, 1024))

    assert plan.execs_per_frame == 1
    assert plan.samples_per_exec == 0
    assert plan.is_oversampled
    assert "exceeds sample rate" in caplog.text


@pytest.mark.parametrize(
    "kwargs",
    [
        {"channels": 3},
        {"channels": 0},
        {"sample_rate": 0},
        {"sample_rate": -44_100},
        {"framerate": 0.0},
        {"framerate": -25.0},
        {"framerate": float("nan")},
        {"framerate": float("inf")},
        {"exec_capacity": 2},
    ],
)
def test_stream_config_rejects_invalid_values(kwargs: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        StreamConfig(**kwargs)  # type: ignore[arg-type]


def test_stream_config_from_exec_len_scales_by_channels() -> None:
    config = StreamConfig.from_exec_len(
        sample_rate=44_100, channels=2, framerate=25, exec_len_per_channel=512
    )
    assert config.exec_capacity == 1024
    assert config.framerate == 25.0

    with pytest.raises(ConfigError):
        StreamConfig.from_exec_len(
            sample_rate=44_100, channels=2, framerate=25, exec_len_per_channel=0
        )
