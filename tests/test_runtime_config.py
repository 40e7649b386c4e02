"""Tests for runtime option normalization."""

from __future__ import annotations

import pytest

from cava_filter.config import ConfigError, StreamConfig
from cava_filter.runtime_config import (
    FilterOptions,
    cava_smoothing,
    high_cutoff_for_rate,
    normalize_weighting_scheme,
    resolve_log_level,
)


def test_resolve_log_level_precedence_matrix() -> None:
    assert resolve_log_level(verbose=False, quiet=False) == "INFO"
    assert resolve_log_level(verbose=True, quiet=False) == "DEBUG"
    assert resolve_log_level(verbose=False, quiet=True) == "WARNING"
    assert resolve_log_level(verbose=True, quiet=True) == "WARNING"


def test_weighting_scheme_normalization() -> None:
    assert normalize_weighting_scheme(" Uniform ") == "uniform"
    assert normalize_weighting_scheme("proportional") == "proportional"
    with pytest.raises(ConfigError):
        normalize_weighting_scheme("loudest")


def test_cava_smoothing_scales_exec_rate() -> None:
    assert cava_smoothing(1.0, 44_100, 1024) == pytest.approx(43.06640625)
    assert cava_smoothing(2.0, 44_100, 1024) == pytest.approx(86.1328125)


def test_high_cutoff_stays_below_nyquist() -> None:
    assert high_cutoff_for_rate(44_100) == 10_000.0
    assert high_cutoff_for_rate(8_000) == pytest.approx(3_600.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"bars_per_channel": 1},
        {"bars_per_channel": 201},
        {"channels_out": 3},
        {"smooth_factor": 0.0},
        {"autosens": -2},
    ],
)
def test_filter_options_validation(kwargs: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        FilterOptions(stream=StreamConfig(), **kwargs)  # type: ignore[arg-type]


def test_stereo_output_requires_stereo_stream() -> None:
    with pytest.raises(ConfigError):
        FilterOptions(
            stream=StreamConfig(channels=1, exec_capacity=512), channels_out=2
        )


def test_transform_config_carries_run_parameters() -> None:
    options = FilterOptions(
        stream=StreamConfig(48_000, 2, 30.0, 2048),
        bars_per_channel=16,
        smooth_factor=0.5,
        autosens=1,
    )

    config = options.transform_config(1500)

    assert config.bars_per_channel == 16
    assert config.sample_rate == 48_000
    assert config.channels == 2
    assert config.input_capacity == 1500
    assert config.output_len == 32
    assert config.autosens == 1
    assert config.exec_rate_hz == pytest.approx(0.5 * 48_000 / 2048)
    assert config.high_cutoff_hz == 10_000.0
