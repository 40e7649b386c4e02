"""Stream configuration record and validation."""

from __future__ import annotations

import math
from dataclasses import dataclass

SUPPORTED_CHANNELS = (1, 2)
DEFAULT_SAMPLE_RATE = 44_100
DEFAULT_CHANNELS = 2
DEFAULT_FRAMERATE = 25.0
DEFAULT_EXEC_LEN_PER_CHANNEL = 512


class ConfigError(ValueError):
    """Raised when run configuration is invalid before any frame is read."""


@dataclass(frozen=True)
class StreamConfig:
    """Immutable description of the input stream and output frame cadence."""

    sample_rate: int = DEFAULT_SAMPLE_RATE
    channels: int = DEFAULT_CHANNELS
    framerate: float = DEFAULT_FRAMERATE
    exec_capacity: int = DEFAULT_EXEC_LEN_PER_CHANNEL * DEFAULT_CHANNELS

    def __post_init__(self) -> None:
        if self.channels not in SUPPORTED_CHANNELS:
            raise ConfigError(f"channels must be 1 or 2, got {self.channels}")
        if isinstance(self.sample_rate, bool) or not isinstance(self.sample_rate, int):
            raise ConfigError("sample rate must be an integer")
        if self.sample_rate <= 0:
            raise ConfigError(f"sample rate must be positive, got {self.sample_rate}")
        if not math.isfinite(self.framerate) or self.framerate <= 0:
            raise ConfigError(f"framerate must be positive, got {self.framerate}")
        if self.exec_capacity <= self.channels:
            raise ConfigError(
                "exec capacity must exceed one channel-group "
                f"({self.exec_capacity} <= {self.channels})"
            )

    @classmethod
    def from_exec_len(
        cls,
        *,
        sample_rate: int,
        channels: int,
        framerate: float,
        exec_len_per_channel: int,
    ) -> StreamConfig:
        """Build a config whose exec capacity is a per-channel length."""
        if exec_len_per_channel <= 0:
            raise ConfigError(
                f"exec length must be positive, got {exec_len_per_channel}"
            )
        return cls(
            sample_rate=sample_rate,
            channels=channels,
            framerate=float(framerate),
            exec_capacity=exec_len_per_channel * channels,
        )

    @property
    def samples_per_frame(self) -> float:
        return self.sample_rate * self.channels / self.framerate
