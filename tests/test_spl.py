import pytest

from vadkit.spl import (
    INT32_MAX,
    INT32_MIN,
    count_leading_zeros32,
    div_w32_w16,
    energy,
    get_scaling_square,
    get_size_in_bits,
    norm_u32,
    norm_w32,
    wrap16,
    wrap32,
)


def test_wrap16_limits():
    assert wrap16(32768) == -32768
    assert wrap16(-32769) == 32767


@pytest.mark.parametrize("value", [-32768, -1, 0, 1, 1234, 32767])
def test_wrap16_identity_in_range(value):
    assert wrap16(value) == value
    assert wrap16(value + 65536) == value


def test_wrap32_min():
    assert wrap32(0x80000000) == INT32_MIN


@pytest.mark.parametrize("value", [INT32_MIN, -5, 0, 7, INT32_MAX])
def test_wrap32_periodic(value):
    assert wrap32(value) == value
    assert wrap32(value + 2**32) == value
    assert wrap32(value - 2**32) == value


def test_count_leading_zeros_of_zero():
    assert count_leading_zeros32(0) == 32


@pytest.mark.parametrize("n", [1, 2, 3, 255, 0x8000, 0x12345678, 0xFFFFFFFF])
def test_count_leading_zeros_normalizes(n):
    shifted = n << count_leading_zeros32(n)
    assert shifted < 2**32
    assert shifted >= 2**31


@pytest.mark.parametrize("n", [1, 2, 3, 160, 240, 0xFFFFFFFF])
def test_get_size_in_bits_bounds(n):
    bits = get_size_in_bits(n)
    assert 2 ** (bits - 1) <= n < 2**bits


def test_norm_w32_zero():
    assert norm_w32(0) == 0


@pytest.mark.parametrize(
    "a", [1, 5, -1, -5, 1000, -1000, 12345678, INT32_MIN, INT32_MAX]
)
def test_norm_w32_is_maximal_shift(a):
    s = norm_w32(a)
    assert INT32_MIN <= a << s <= INT32_MAX
    assert not INT32_MIN <= a << (s + 1) <= INT32_MAX


@pytest.mark.parametrize("a", [1, 3, 0x8000, 0x7FFFFFFF, 0xFFFFFFFF])
def test_norm_u32_is_maximal_shift(a):
    s = norm_u32(a)
    assert a << s < 2**32
    assert a << (s + 1) >= 2**32


def test_div_by_zero_saturates():
    assert div_w32_w16(12345, 0) == 0x7FFFFFFF


def test_div_truncates_toward_zero():
    assert div_w32_w16(-7, 2) == -3


@pytest.mark.parametrize(
    "num, den",
    [(100, 7), (-100, 7), (100, -7), (-100, -7), (131072 + 100, 200), (INT32_MAX, 3)],
)
def test_div_remainder_invariant(num, den):
    q = div_w32_w16(num, den)
    r = num - q * den
    assert abs(r) < abs(den)
    assert r == 0 or (r < 0) == (num < 0)


def test_scaling_square_of_silence():
    assert get_scaling_square([0] * 80, 80) == 0


def test_scaling_square_small_vector_needs_no_shift():
    assert get_scaling_square([1, -2, 3], 3) == 0


def test_energy_example():
    assert energy([3, 4]) == (25, 0)


def test_energy_small_vector_is_sum_of_squares():
    vector = [10, -20, 30, -40]
    total, scale = energy(vector)
    assert scale == 0
    assert total == sum(x * x for x in vector)


def test_energy_loud_vector_does_not_overflow():
    vector = [32767, -32767] * 80
    total, scale = energy(vector)
    assert scale > 0
    assert 0 < total <= INT32_MAX