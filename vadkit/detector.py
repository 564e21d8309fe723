"""Voice activity detector working on frames of 16-bit PCM audio."""

from __future__ import annotations

import struct
from collections.abc import Callable, Sequence
from enum import IntEnum

from vadkit.core import VadCore
from vadkit.model import Mode

VALID_RATES = (8000, 16000, 32000, 48000)
MAX_FRAME_LENGTH_MS = 30
FRAME_DURATIONS_MS = (10, 20, MAX_FRAME_LENGTH_MS)


class VadError(ValueError):
    """Raised for an invalid mode, sample rate or frame."""


class Activity(IntEnum):
    """Outcome of a decision on one frame."""

    PASSIVE = 0
    ACTIVE = 1
    ERROR = -1


def valid_rate_and_frame_length(rate: int, frame_length: int) -> bool:
    """Whether ``frame_length`` samples make a 10, 20 or 30 ms frame at ``rate`` Hz."""
    if rate not in VALID_RATES:
        return False
    return frame_length in {rate // 1000 * ms for ms in FRAME_DURATIONS_MS}


def _as_samples(frame: Sequence[int] | bytes | bytearray | memoryview) -> Sequence[int]:
    """Accept either int16 samples or raw little-endian 16-bit PCM bytes."""
    if isinstance(frame, (bytes, bytearray, memoryview)):
        raw = bytes(frame)
        if len(raw) % 2:
            raise VadError(f"PCM data must have an even number of bytes, got {len(raw)}")
        return struct.unpack(f"<{len(raw) // 2}h", raw)
    return frame


def _checked_mode(mode: Mode | int) -> Mode:
    try:
        return Mode(mode)
    except ValueError:
        raise VadError(f"invalid aggressiveness mode: {mode!r}") from None


class Vad:
    """A voice activity detector with a chosen aggressiveness mode."""

    def __init__(self, mode: Mode | int = Mode.QUALITY) -> None:
        self._mode = _checked_mode(mode)
        self._core = VadCore(self._mode)

    @property
    def mode(self) -> Mode:
        """The current aggressiveness mode."""
        return self._mode

    def set_mode(self, mode: Mode | int) -> None:
        """Switch to another aggressiveness mode (0 to 3)."""
        self._mode = _checked_mode(mode)
        self._core.set_mode(self._mode)

    def reset(self) -> None:
        """Forget all adapted state, keeping the current mode."""
        self._core.reset()
        self._core.set_mode(self._mode)

    def process(
        self, sample_rate: int, frame: Sequence[int] | bytes | bytearray | memoryview
    ) -> int:
        """Return 1 if ``frame`` holds active voice, 0 otherwise.

        The frame must be 10, 20 or 30 ms long at 8, 16, 32 or 48 kHz.
        """
        samples = _as_samples(frame)
        if not valid_rate_and_frame_length(sample_rate, len(samples)):
            raise VadError(
                f"invalid combination of sample rate {sample_rate} Hz"
                f" and frame length {len(samples)}"
            )
        calculators: dict[int, Callable[[Sequence[int]], int]] = {
            8000: self._core.calc_vad_8khz,
            16000: self._core.calc_vad_16khz,
            32000: self._core.calc_vad_32khz,
            48000: self._core.calc_vad_48khz,
        }
        decision = calculators[sample_rate](samples)
        return 1 if decision > 0 else decision

    def is_speech(
        self, frame: Sequence[int] | bytes | bytearray | memoryview, sample_rate: int
    ) -> Activity:
        """Classify ``frame`` as active or passive."""
        return Activity(self.process(sample_rate, frame))