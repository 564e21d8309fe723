"""Polyphase all-pass resampling filters, including a 48 kHz to 8 kHz resampler."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass, field

from vadkit.spl import INT16_MAX, INT16_MIN, wrap32

_UPPER = (821, 6110, 12382)
_LOWER = (3050, 9368, 15063)

_COEFS_48_TO_32 = (
    (778, -2050, 1087, 23285, 12903, -3783, 441, 222),
    (222, 441, -3783, 12903, 23285, 1087, -2050, 778),
)

FRAME_LENGTH_48KHZ = 480
FRAME_LENGTH_8KHZ = 80


def _saturate16(value: int) -> int:
    return max(INT16_MIN, min(INT16_MAX, value))


def _truncate14(diff: int) -> int:
    diff >>= 14
    return diff + 1 if diff < 0 else diff


def _allpass(x: int, state: MutableSequence[int], base: int, coefs: tuple[int, int, int]) -> int:
    """Run one sample through a three-stage all-pass section stored at ``state[base:base+4]``."""
    c0, c1, c2 = coefs
    diff = wrap32(wrap32(x - state[base + 1]) + (1 << 13)) >> 14
    tmp1 = wrap32(state[base] + diff * c0)
    state[base] = x
    diff = _truncate14(wrap32(tmp1 - state[base + 2]))
    tmp0 = wrap32(state[base + 1] + diff * c1)
    state[base + 1] = tmp1
    diff = _truncate14(wrap32(tmp0 - state[base + 3]))
    state[base + 3] = wrap32(state[base + 2] + diff * c2)
    state[base + 2] = tmp0
    return state[base + 3]


def down_by_2_int_to_short(data: Sequence[int], state: MutableSequence[int]) -> list[int]:
    """Halve the rate of a Q15-scaled int32 signal, returning saturated int16 samples.

    ``state`` holds 8 filter values and is updated in place.
    """
    half = len(data) // 2
    even = [_allpass(wrap32(x), state, 0, _LOWER) >> 1 for x in data[0 : 2 * half : 2]]
    odd = [_allpass(wrap32(x), state, 4, _UPPER) >> 1 for x in data[1 : 2 * half : 2]]
    return [_saturate16(wrap32(a + b) >> 15) for a, b in zip(even, odd)]


def down_by_2_short_to_int(data: Sequence[int], state: MutableSequence[int]) -> list[int]:
    """Halve the rate of an int16 signal, returning int32 samples scaled by 2**15.

    ``state`` holds 8 filter values and is updated in place.
    """
    half = len(data) // 2
    even = [
        _allpass(wrap32((x << 15) + (1 << 14)), state, 0, _LOWER) >> 1
        for x in data[0 : 2 * half : 2]
    ]
    odd = [
        _allpass(wrap32((x << 15) + (1 << 14)), state, 4, _UPPER) >> 1
        for x in data[1 : 2 * half : 2]
    ]
    return [wrap32(a + b) for a, b in zip(even, odd)]


def lp_by_2_int_to_int(data: Sequence[int], state: MutableSequence[int]) -> list[int]:
    """Low-pass filter an int32 signal at a quarter of its rate, keeping the rate.

    The input is scaled by 2**15 and the output is not. ``state`` holds 16 filter
    values and is updated in place.
    """
    half = len(data) // 2
    evens = list(data[0 : 2 * half : 2])
    odds = list(data[1 : 2 * half : 2])
    delayed = ([state[12]] + odds)[:half]

    even_out = [_allpass(x, state, 0, _LOWER) >> 1 for x in delayed]
    even_out = [
        wrap32(a + (_allpass(x, state, 4, _UPPER) >> 1)) >> 15
        for a, x in zip(even_out, evens)
    ]
    odd_out = [_allpass(x, state, 8, _LOWER) >> 1 for x in evens]
    odd_out = [
        wrap32(a + (_allpass(x, state, 12, _UPPER) >> 1)) >> 15
        for a, x in zip(odd_out, odds)
    ]
    return [sample for pair in zip(even_out, odd_out) for sample in pair]


def resample_48khz_to_32khz(data: Sequence[int], blocks: int) -> list[int]:
    """Resample by 2/3: each block of 3 inputs gives 2 outputs scaled by 2**15.

    ``data`` must hold ``3 * blocks + 6`` samples, the last six being look-ahead.
    """
    if blocks > 0 and len(data) < 3 * blocks + 6:
        raise ValueError(f"need at least {3 * blocks + 6} samples for {blocks} blocks")
    first, second = _COEFS_48_TO_32
    out: list[int] = []
    for m in range(blocks):
        base = 3 * m
        out.append(wrap32((1 << 14) + sum(c * x for c, x in zip(first, data[base : base + 8]))))
        out.append(
            wrap32((1 << 14) + sum(c * x for c, x in zip(second, data[base + 1 : base + 9])))
        )
    return out


@dataclass
class Resampler48To8:
    """Stateful 48 kHz to 8 kHz resampler working on 10 ms frames."""

    s_48_24: list[int] = field(default_factory=lambda: [0] * 8)
    s_24_24: list[int] = field(default_factory=lambda: [0] * 16)
    s_24_16: list[int] = field(default_factory=lambda: [0] * 8)
    s_16_8: list[int] = field(default_factory=lambda: [0] * 8)

    def reset(self) -> None:
        """Clear all filter states."""
        self.s_48_24 = [0] * 8
        self.s_24_24 = [0] * 16
        self.s_24_16 = [0] * 8
        self.s_16_8 = [0] * 8

    def process(self, frame: Sequence[int]) -> list[int]:
        """Turn 480 int16 samples at 48 kHz into 80 int16 samples at 8 kHz."""
        if len(frame) != FRAME_LENGTH_48KHZ:
            raise ValueError(
                f"frame must hold {FRAME_LENGTH_48KHZ} samples, got {len(frame)}"
            )
        at_24 = down_by_2_short_to_int(frame, self.s_48_24)
        filtered = lp_by_2_int_to_int(at_24, self.s_24_24)
        buffered = self.s_24_16 + filtered
        self.s_24_16 = filtered[-8:]
        at_16 = resample_48khz_to_32khz(buffered, FRAME_LENGTH_8KHZ)
        return down_by_2_int_to_short(at_16, self.s_16_8)