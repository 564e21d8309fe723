"""Filter bank that turns an 8 kHz frame into six log-energy band features."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence

from vadkit.spl import energy, norm_u32, wrap16, wrap32

NUM_CHANNELS = 6
MIN_ENERGY = 10
MAX_FRAME_LENGTH = 240

# All-pass coefficients, upper and lower branch.
_ALL_PASS_COEFS_Q13 = (5243, 1392)
_ALL_PASS_COEFS_Q15 = (20972, 5571)

_LOG_CONST = 24660  # 160 * log10(2) in Q9.
_LOG_ENERGY_INT_PART = 14336  # 14 in Q10.

_HP_ZERO_COEFS = (6631, -13262, 6631)
_HP_POLE_COEFS = (16384, -7756, 5620)

OFFSET_VECTOR = (368, 368, 272, 176, 176, 176)


def downsample(signal: Sequence[int], filter_state: MutableSequence[int]) -> list[int]:
    """Halve the sample rate with two all-pass branches.

    ``filter_state`` holds the two branch states and is updated in place.
    """
    upper_coef, lower_coef = _ALL_PASS_COEFS_Q13
    state_upper = filter_state[0]
    state_lower = filter_state[1]
    half = len(signal) // 2
    out: list[int] = []
    for upper_in, lower_in in zip(signal[0 : 2 * half : 2], signal[1 : 2 * half : 2]):
        upper = wrap16((state_upper >> 1) + ((upper_coef * upper_in) >> 14))
        state_upper = wrap32(upper_in - ((upper_coef * upper) >> 12))

        lower = wrap16((state_lower >> 1) + ((lower_coef * lower_in) >> 14))
        state_lower = wrap32(lower_in - ((lower_coef * lower) >> 12))

        out.append(wrap16(upper + lower))
    filter_state[0] = state_upper
    filter_state[1] = state_lower
    return out


def high_pass_filter(data: Sequence[int], filter_state: MutableSequence[int]) -> list[int]:
    """High-pass filter with an 80 Hz cut-off for data sampled at 500 Hz.

    ``filter_state`` holds four values and is updated in place.
    """
    out: list[int] = []
    for sample in data:
        acc = _HP_ZERO_COEFS[0] * sample
        acc += _HP_ZERO_COEFS[1] * filter_state[0]
        acc += _HP_ZERO_COEFS[2] * filter_state[1]
        filter_state[1] = filter_state[0]
        filter_state[0] = sample

        acc -= _HP_POLE_COEFS[1] * filter_state[2]
        acc -= _HP_POLE_COEFS[2] * filter_state[3]
        filter_state[3] = filter_state[2]
        filter_state[2] = wrap16(wrap32(acc) >> 14)
        out.append(filter_state[2])
    return out


def all_pass_filter(
    data: Sequence[int], coefficient: int, filter_state: int
) -> tuple[list[int], int]:
    """First-order all-pass filter over ``data``.

    ``coefficient`` is in Q15 and ``filter_state`` in Q(-1). Returns the output
    in Q(-1) and the new filter state.
    """
    state32 = wrap32(filter_state << 16)
    out: list[int] = []
    for sample in data:
        acc = wrap32(state32 + coefficient * sample)
        filtered = wrap16(acc >> 16)
        out.append(filtered)
        state32 = wrap32(wrap32((sample << 14) - coefficient * filtered) * 2)
    return out, wrap16(state32 >> 16)


def split_filter(
    data: Sequence[int],
    upper_state: MutableSequence[int],
    lower_state: MutableSequence[int],
    band: int,
) -> tuple[list[int], list[int]]:
    """Split ``data`` into high-pass and low-pass halves at half the rate.

    Only ``upper_state[band]`` and ``lower_state[band]`` are used and updated.
    Returns ``(high_pass, low_pass)``, each half as long as ``data``.
    """
    half = len(data) // 2
    upper, upper_state[band] = all_pass_filter(
        data[0 : 2 * half : 2], _ALL_PASS_COEFS_Q15[0], upper_state[band]
    )
    lower, lower_state[band] = all_pass_filter(
        data[1 : 2 * half : 2], _ALL_PASS_COEFS_Q15[1], lower_state[band]
    )
    high_pass = [wrap16(u - v) for u, v in zip(upper, lower)]
    low_pass = [wrap16(v + u) for u, v in zip(upper, lower)]
    return high_pass, low_pass


def log_of_energy(data: Sequence[int], offset: int, total_energy: int) -> tuple[int, int]:
    """Energy of ``data`` as ``10 * log10`` in Q4, plus ``offset``.

    Returns ``(log_energy, total_energy)``; the running total is only raised
    while it has not yet exceeded the minimum energy.
    """
    if not data:
        raise ValueError("data must not be empty")

    raw_energy, tot_rshifts = energy(data)
    value = raw_energy & 0xFFFFFFFF
    if value == 0:
        return offset, total_energy

    normalizing_rshifts = 17 - norm_u32(value)
    tot_rshifts += normalizing_rshifts
    if normalizing_rshifts < 0:
        value = (value << -normalizing_rshifts) & 0xFFFFFFFF
    else:
        value >>= normalizing_rshifts

    log2_energy = wrap16(_LOG_ENERGY_INT_PART + ((value & 0x3FFF) >> 4))
    log_energy = wrap16(
        ((_LOG_CONST * log2_energy) >> 19) + ((tot_rshifts * _LOG_CONST) >> 9)
    )
    log_energy = max(log_energy, 0)
    log_energy = wrap16(log_energy + offset)

    if total_energy <= MIN_ENERGY:
        if tot_rshifts >= 0:
            total_energy = wrap16(total_energy + MIN_ENERGY + 1)
        else:
            total_energy = wrap16(total_energy + wrap16(value >> -tot_rshifts))
    return log_energy, total_energy


class FeatureExtractor:
    """Computes the six band log-energies of consecutive 8 kHz frames."""

    def __init__(self) -> None:
        self.upper_state = [0] * 5
        self.lower_state = [0] * 5
        self.hp_filter_state = [0] * 4

    def reset(self) -> None:
        """Clear all filter states."""
        self.upper_state = [0] * 5
        self.lower_state = [0] * 5
        self.hp_filter_state = [0] * 4

    def extract(self, data: Sequence[int]) -> tuple[list[int], int]:
        """Return the band features (Q4) and an approximate total energy of ``data``.

        Bands, lowest first: 80-250, 250-500, 500-1000, 1000-2000, 2000-3000
        and 3000-4000 Hz. ``data`` holds at most 240 samples.
        """
        if len(data) > MAX_FRAME_LENGTH:
            raise ValueError(
                f"frame must hold at most {MAX_FRAME_LENGTH} samples, got {len(data)}"
            )
        features = [0] * NUM_CHANNELS
        total = 0
        upper, lower = self.upper_state, self.lower_state

        # Split at 2000 Hz.
        hp_2000, lp_2000 = split_filter(data, upper, lower, 0)

        # Upper band: split at 3000 Hz.
        hp_3000, lp_3000 = split_filter(hp_2000, upper, lower, 1)
        features[5], total = log_of_energy(hp_3000, OFFSET_VECTOR[5], total)
        features[4], total = log_of_energy(lp_3000, OFFSET_VECTOR[4], total)

        # Lower band: split at 1000 Hz.
        hp_1000, lp_1000 = split_filter(lp_2000, upper, lower, 2)
        features[3], total = log_of_energy(hp_1000, OFFSET_VECTOR[3], total)

        # Split at 500 Hz.
        hp_500, lp_500 = split_filter(lp_1000, upper, lower, 3)
        features[2], total = log_of_energy(hp_500, OFFSET_VECTOR[2], total)

        # Split at 250 Hz.
        hp_250, lp_250 = split_filter(lp_500, upper, lower, 4)
        features[1], total = log_of_energy(hp_250, OFFSET_VECTOR[1], total)

        # Remove 0-80 Hz from the lowest band.
        band_80 = high_pass_filter(lp_250, self.hp_filter_state)
        features[0], total = log_of_energy(band_80, OFFSET_VECTOR[0], total)

        return features, total