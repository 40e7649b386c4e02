"""Test configuration."""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class RecordingTransform:
    """Transform double returning each exec's length as every bar value."""

    def __init__(self, output_len: int, cutoffs: tuple[float, ...] = ()) -> None:
        self._output_len = output_len
        self._cutoffs = cutoffs
        self.counts: list[int] = []
        self.first_samples: list[float] = []
        self.close_calls = 0
        self.fail_on_exec: int | None = None

    @property
    def cutoff_frequencies(self) -> tuple[float, ...]:
        return self._cutoffs

    @property
    def output_len(self) -> int:
        return self._output_len

    def execute(self, samples, count):  # noqa: ANN001
        if self.fail_on_exec is not None and len(self.counts) == self.fail_on_exec:
            raise RuntimeError("transform failed")
        self.counts.append(count)
        self.first_samples.append(float(samples[0]))
        return np.full(self._output_len, float(count))

    def close(self) -> None:
        self.close_calls += 1

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@pytest.fixture
def recording_transform() -> RecordingTransform:
    return RecordingTransform(output_len=4, cutoffs=(60.0, 250.0))


def pcm_bytes(samples) -> bytes:  # noqa: ANN001
    return np.asarray(samples, dtype="<i2").tobytes()
