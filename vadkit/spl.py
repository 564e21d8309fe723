"""Fixed-point signal processing helpers with 16/32-bit integer semantics."""

from __future__ import annotations

from collections.abc import Sequence
from itertools import chain

INT16_MAX = 32767
INT16_MIN = -32768
INT32_MAX = 0x7FFFFFFF
INT32_MIN = -0x80000000


def wrap16(value: int) -> int:
    """Reduce an integer to a signed 16-bit value with two's complement wrap-around."""
    return ((value + 0x8000) & 0xFFFF) - 0x8000


def wrap32(value: int) -> int:
    """Reduce an integer to a signed 32-bit value with two's complement wrap-around."""
    return ((value + 0x80000000) & 0xFFFFFFFF) - 0x80000000


def count_leading_zeros32(n: int) -> int:
    """Number of leading zero bits of ``n`` taken as an unsigned 32-bit value."""
    return 32 - (n & 0xFFFFFFFF).bit_length()


def get_size_in_bits(n: int) -> int:
    """Number of bits needed to represent ``n`` as an unsigned 32-bit value."""
    return 32 - count_leading_zeros32(n)


def norm_w32(a: int) -> int:
    """Steps a signed 32-bit value can be shifted left without overflow (0 for 0)."""
    a = wrap32(a)
    if a == 0:
        return 0
    return count_leading_zeros32(~a if a < 0 else a) - 1


def norm_u32(a: int) -> int:
    """Steps an unsigned 32-bit value can be shifted left without overflow (0 for 0)."""
    a &= 0xFFFFFFFF
    if a == 0:
        return 0
    return count_leading_zeros32(a)


def div_w32_w16(num: int, den: int) -> int:
    """Divide, truncating toward zero; division by zero yields the largest int32."""
    if den == 0:
        return INT32_MAX
    quotient = abs(num) // abs(den)
    if (num < 0) != (den < 0):
        quotient = -quotient
    return wrap32(quotient)


def get_scaling_square(vector: Sequence[int], times: int) -> int:
    """Right shift needed so that ``times`` squared samples of ``vector`` fit in 32 bits."""
    nbits = get_size_in_bits(times)
    smax = max(chain([-1], (wrap16(abs(sample)) for sample in vector)))
    if smax == 0:
        return 0
    t = norm_w32(smax * smax)
    return 0 if t > nbits else nbits - t


def energy(vector: Sequence[int]) -> tuple[int, int]:
    """Return ``(energy, scale_factor)``: the scaled sum of squares and the shift used."""
    scaling = get_scaling_square(vector, len(vector))
    total = 0
    for sample in vector:
        total = wrap32(total + ((sample * sample) >> scaling))
    return total, scaling