"""Runtime configuration normalization helpers.

These helpers keep CLI flag interpretation deterministic and turn validated
options into the stream and transform records used by the read loop.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import ConfigError, StreamConfig
from .services.spectrum_accumulator import WEIGHTING_SCHEMES, WeightingScheme
from .services.spectrum_transform import TransformConfig

MIN_BARS = 2
MAX_BARS = 200
DEFAULT_BARS = 10
DEFAULT_HEIGHT = 100
DEFAULT_LOW_CUTOFF_HZ = 50.0
DEFAULT_HIGH_CUTOFF_HZ = 10_000.0
_NYQUIST_HEADROOM = 0.9


def resolve_log_level(*, verbose: bool, quiet: bool) -> str:
    """Resolve effective log level from CLI flags.

    Precedence is deterministic: --quiet overrides --verbose.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def normalize_weighting_scheme(value: str) -> WeightingScheme:
    normalized = value.strip().lower()
    for scheme in WEIGHTING_SCHEMES:
        if scheme == normalized:
            return scheme
    raise ConfigError(f"unknown weighting scheme: {value!r}")


def cava_smoothing(smooth_factor: float, sample_rate: int, exec_capacity: int) -> float:
    """Exec rate handed to the transform's noise reduction.

    Scaling by ``smooth_factor`` makes 1 the normal setting, larger values
    smoother and smaller values more responsive.
    """
    return smooth_factor * sample_rate / exec_capacity


def high_cutoff_for_rate(sample_rate: int) -> float:
    return min(DEFAULT_HIGH_CUTOFF_HZ, _NYQUIST_HEADROOM * sample_rate / 2)


@dataclass(frozen=True)
class FilterOptions:
    """Validated user options for one filter run."""

    stream: StreamConfig
    bars_per_channel: int = DEFAULT_BARS
    channels_out: int = 1
    smooth_factor: float = 1.0
    autosens: int = 0
    print_freq_bands: bool = False
    weighting: WeightingScheme = "proportional"

    def __post_init__(self) -> None:
        if not MIN_BARS <= self.bars_per_channel <= MAX_BARS:
            raise ConfigError(f"select between {MIN_BARS} and {MAX_BARS} bars")
        if self.channels_out not in (1, 2):
            raise ConfigError("output channels must be 1 or 2")
        if self.channels_out > self.stream.channels:
            raise ConfigError("stereo output needs stereo input")
        if not self.smooth_factor > 0:
            raise ConfigError("smooth factor must be a positive number")
        if self.autosens < 0:
            raise ConfigError("autosens cannot be negative (0 to disable)")

    def transform_config(self, input_capacity: int) -> TransformConfig:
        """Transform parameters for execs of at most ``input_capacity`` samples."""
        stream = self.stream
        return TransformConfig(
            bars_per_channel=self.bars_per_channel,
            sample_rate=stream.sample_rate,
            channels=stream.channels,
            input_capacity=input_capacity,
            height=DEFAULT_HEIGHT,
            exec_rate_hz=cava_smoothing(
                self.smooth_factor, stream.sample_rate, stream.exec_capacity
            ),
            autosens=self.autosens,
            low_cutoff_hz=DEFAULT_LOW_CUTOFF_HZ,
            high_cutoff_hz=high_cutoff_for_rate(stream.sample_rate),
        )
