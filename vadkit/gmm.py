"""Gaussian probability used by the speech and noise mixture models."""

from __future__ import annotations

from vadkit.spl import div_w32_w16, wrap16, wrap32

COMP_VAR = 22005
LOG2_EXP = 5909  # log2(exp(1)) in Q12.


def gaussian_probability(input_value: int, mean: int, std: int) -> tuple[int, int]:
    """Probability of ``input_value`` under a normal distribution, in fixed point.

    ``input_value`` is in Q4, ``mean`` and ``std`` in Q7. Returns
    ``(probability, delta)`` where ``probability`` is
    ``1 / std * exp(-(x - mean)**2 / (2 * std**2))`` in Q20 and ``delta`` is
    ``(x - mean) / std**2`` in Q11, used when updating the model.
    """
    # 1 / std in Q10; the added half of std rounds instead of truncating.
    inv_std = wrap16(div_w32_w16(131072 + (std >> 1), std))

    # 1 / std**2 in Q14.
    quarter = inv_std >> 2
    inv_std2 = wrap16((quarter * quarter) >> 2)

    distance = wrap16(wrap16(input_value << 3) - mean)  # Q7

    delta = wrap16((inv_std2 * distance) >> 10)  # Q11

    # (x - mean)**2 / (2 * std**2) in Q10.
    exponent = wrap32(delta * distance) >> 9

    exp_value = 0
    if exponent < COMP_VAR:
        scaled = wrap16(wrap32(LOG2_EXP * exponent) >> 12)
        scaled = wrap16(-scaled)
        exp_value = 0x0400 | (scaled & 0x03FF)
        shift = wrap16(scaled ^ 0xFFFF)
        shift = (shift >> 10) + 1
        exp_value >>= shift

    return wrap32(inv_std * exp_value), delta