"""Blocking reader for raw interleaved pcm_s16le streams."""

from __future__ import annotations

import logging
from typing import BinaryIO

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

PCM_DTYPE = np.dtype("<i2")
_SAMPLE_WIDTH = PCM_DTYPE.itemsize


class PcmStreamReader:
    """Read whole int16 samples from a binary stream.

    ``read`` returns fewer samples than requested only at end of input or on
    an I/O error; the two are told apart by ``error``. Once a short read has
    happened the reader stays exhausted.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self.error: OSError | None = None
        self.exhausted = False
        self.samples_read = 0

    def read(self, count: int) -> npt.NDArray[np.int16]:
        if count < 0:
            raise ValueError(f"sample count must not be negative, got {count}")
        if self.exhausted:
            return np.zeros(0, dtype=PCM_DTYPE)
        wanted = count * _SAMPLE_WIDTH
        chunks: list[bytes] = []
        received = 0
        while received < wanted:
            try:
                chunk = self._stream.read(wanted - received)
            except OSError as exc:
                logger.error(
                    "PCM read failed after %d samples: %s", self.samples_read, exc
                )
                self.error = exc
                self.exhausted = True
                break
            if not chunk:
                self.exhausted = True
                break
            chunks.append(chunk)
            received += len(chunk)
        raw = b"".join(chunks)
        # a trailing odd byte is not a whole sample
        usable = len(raw) - (len(raw) % _SAMPLE_WIDTH)
        samples = np.frombuffer(raw[:usable], dtype=PCM_DTYPE)
        self.samples_read += samples.shape[0]
        return samples
