"""Spectrum transform contract and the default cava-style FFT bar transform."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from types import TracebackType
from typing import Protocol

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

_NOISE_REDUCTION_REFERENCE_RATE_HZ = 60.0
_AUTOSENS_OVERSHOOT_STEP = 0.98
_AUTOSENS_RECOVER_STEP = 1.001
_AUTOSENS_INITIAL_STEP = 1.1
_EQ_SCALE = float(2**28)


class TransformInitError(ValueError):
    """Raised when a transform cannot be built from its configuration."""


@dataclass(frozen=True)
class TransformConfig:
    """Explicit parameter record for spectrum transform construction."""

    bars_per_channel: int
    sample_rate: int
    channels: int
    input_capacity: int
    height: int = 100
    exec_rate_hz: float = _NOISE_REDUCTION_REFERENCE_RATE_HZ
    autosens: int = 0
    noise_reduction: float = 0.77
    low_cutoff_hz: float = 50.0
    high_cutoff_hz: float = 10_000.0

    @property
    def output_len(self) -> int:
        return self.bars_per_channel * self.channels

    def validate(self) -> None:
        """Raise ``TransformInitError`` for parameters the transform rejects."""
        if self.bars_per_channel < 1:
            raise TransformInitError("bars per channel must be at least 1")
        if self.sample_rate <= 0:
            raise TransformInitError("sample rate must be positive")
        if self.channels not in (1, 2):
            raise TransformInitError("channels must be 1 or 2")
        if self.input_capacity < self.channels:
            raise TransformInitError("input capacity must hold one channel-group")
        if self.height <= 0:
            raise TransformInitError("height must be positive")
        if not self.exec_rate_hz > 0:
            raise TransformInitError("exec rate must be positive")
        if self.autosens < 0:
            raise TransformInitError("autosens cannot be negative")
        if not 0.0 <= self.noise_reduction < 1.0:
            raise TransformInitError("noise reduction must be in [0, 1)")
        if not 0.0 < self.low_cutoff_hz < self.high_cutoff_hz:
            raise TransformInitError("cutoffs must satisfy 0 < low < high")
        if self.high_cutoff_hz >= self.sample_rate / 2:
            raise TransformInitError(
                f"high cutoff {self.high_cutoff_hz:g} Hz must be below Nyquist "
                f"({self.sample_rate / 2:g} Hz)"
            )


class SpectrumTransform(Protocol):
    """Stateful per-exec spectrum transform."""

    @property
    def cutoff_frequencies(self) -> tuple[float, ...]: ...

    @property
    def output_len(self) -> int: ...

    def execute(
        self, samples: npt.NDArray[np.float64], count: int
    ) -> npt.NDArray[np.float64]: ...

    def close(self) -> None: ...


def fft_size_for_rate(sample_rate: int) -> int:
    """Return the power-of-two FFT length giving roughly 10 Hz bins."""
    size = 256
    while size < sample_rate / 10:
        size <<= 1
    return size


class CavaSpectrumTransform:
    """Log-spaced FFT bars with cava-style smoothing and auto sensitivity.

    Each channel keeps a rolling window of the most recent ``fft_size``
    samples; ``execute`` shifts new samples in and returns
    ``bars_per_channel`` magnitudes per channel, left bars first.
    """

    def __init__(self, config: TransformConfig) -> None:
        config.validate()
        self.config = config
        self.fft_size = fft_size_for_rate(config.sample_rate)
        self._window = np.hanning(self.fft_size)
        self._history = np.zeros((config.channels, self.fft_size), dtype=np.float64)
        self._band_edges = _band_bin_edges(config, self.fft_size)
        bin_hz = config.sample_rate / self.fft_size
        self._cutoffs = tuple(float(edge * bin_hz) for edge in self._band_edges[1:])
        self._eq = np.array(self._cutoffs, dtype=np.float64) / _EQ_SCALE
        self._eq *= config.height / math.log2(self.fft_size)
        self._decay = config.noise_reduction ** (
            _NOISE_REDUCTION_REFERENCE_RATE_HZ / config.exec_rate_hz
        )
        self._memory = np.zeros(config.output_len, dtype=np.float64)
        self._sens = 1.0
        self._sens_init = True
        self._closed = False
        logger.debug(
            "Spectrum transform ready: %d bars/channel, fft %d, decay %.3f",
            config.bars_per_channel,
            self.fft_size,
            self._decay,
        )

    @property
    def cutoff_frequencies(self) -> tuple[float, ...]:
        return self._cutoffs

    @property
    def output_len(self) -> int:
        return self.config.output_len

    def execute(
        self, samples: npt.NDArray[np.float64], count: int
    ) -> npt.NDArray[np.float64]:
        if self._closed:
            raise RuntimeError("spectrum transform is closed")
        channels = self.config.channels
        if count > self.config.input_capacity:
            raise ValueError(
                f"exec of {count} samples exceeds capacity {self.config.input_capacity}"
            )
        if count % channels:
            raise ValueError("exec length must be whole channel-groups")
        frames = np.asarray(samples[:count], dtype=np.float64).reshape(-1, channels).T
        self._push(frames)

        spectrum = np.abs(np.fft.rfft(self._history * self._window, axis=1))
        raw = np.empty(self.config.output_len, dtype=np.float64)
        bars = self.config.bars_per_channel
        for channel in range(channels):
            for bar, (lo, hi) in enumerate(
                zip(self._band_edges[:-1], self._band_edges[1:])
            ):
                raw[channel * bars + bar] = spectrum[channel, lo:hi].mean()
            raw[channel * bars : (channel + 1) * bars] *= self._eq

        smoothed = self._memory * self._decay + raw * (1.0 - self._decay)
        self._memory = smoothed
        out = smoothed * self._sens
        if self.config.autosens:
            out = self._apply_autosens(out)
        return np.maximum(out, 0.0)

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> CavaSpectrumTransform:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _push(self, frames: npt.NDArray[np.float64]) -> None:
        count = frames.shape[1]
        if count == 0:
            return
        if count >= self.fft_size:
            self._history[:, :] = frames[:, -self.fft_size :]
            return
        self._history[:, :-count] = self._history[:, count:]
        self._history[:, -count:] = frames

    def _apply_autosens(
        self, out: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        height = float(self.config.height)
        if np.any(out > height):
            self._sens *= _AUTOSENS_OVERSHOOT_STEP
            self._sens_init = False
        elif np.any(out > 0.0):
            step = _AUTOSENS_INITIAL_STEP if self._sens_init else _AUTOSENS_RECOVER_STEP
            self._sens *= step
        return np.minimum(out, height)


def _band_bin_edges(config: TransformConfig, fft_size: int) -> list[int]:
    """Return ``bars + 1`` strictly increasing FFT bin edges."""
    bin_hz = config.sample_rate / fft_size
    max_bin = fft_size // 2
    ratio = config.high_cutoff_hz / config.low_cutoff_hz
    edges: list[int] = []
    for idx in range(config.bars_per_channel + 1):
        freq = config.low_cutoff_hz * ratio ** (idx / config.bars_per_channel)
        edge = max(1, int(round(freq / bin_hz)))
        if edges and edge <= edges[-1]:
            edge = edges[-1] + 1
        edges.append(edge)
    if edges[-1] > max_bin:
        raise TransformInitError(
            f"{config.bars_per_channel} bars do not fit between "
            f"{config.low_cutoff_hz:g} and {config.high_cutoff_hz:g} Hz"
        )
    return edges
