"""Gaussian mixture speech/noise model that makes the per-frame VAD decision."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from enum import IntEnum

from vadkit.gmm import gaussian_probability
from vadkit.spl import INT16_MAX, div_w32_w16, norm_w32, wrap16, wrap32

NUM_CHANNELS = 6
NUM_GAUSSIANS = 2
TABLE_SIZE = NUM_CHANNELS * NUM_GAUSSIANS
MIN_ENERGY = 10

_WINDOW = 16
_MAX_AGE = 100
_EMPTY_VALUE = 10000
_DEFAULT_MEDIAN = 1600

_SMOOTHING_DOWN = 6553  # 0.2 in Q15.
_SMOOTHING_UP = 32439  # 0.99 in Q15.

SPECTRUM_WEIGHT = (6, 8, 10, 12, 14, 16)
_NOISE_UPDATE_CONST = 655  # Q15
_SPEECH_UPDATE_CONST = 6554  # Q15
_BACK_ETA = 154  # Q8
MINIMUM_DIFFERENCE = (544, 544, 576, 576, 576, 576)  # Q5
MAXIMUM_SPEECH = (11392, 11392, 11520, 11520, 11520, 11520)  # Q7
MINIMUM_MEAN = (640, 768)
MAXIMUM_NOISE = (9216, 9088, 8960, 8832, 8704, 8576)  # Q7

NOISE_DATA_WEIGHTS = (34, 62, 72, 66, 53, 25, 94, 66, 56, 62, 75, 103)
SPEECH_DATA_WEIGHTS = (48, 82, 45, 87, 50, 47, 80, 46, 83, 41, 78, 81)
NOISE_DATA_MEANS = (6738, 4892, 7065, 6715, 6771, 3369, 7646, 3863, 7820, 7266, 5020, 4362)
SPEECH_DATA_MEANS = (8306, 10085, 10078, 11823, 11843, 6309, 9473, 9571, 10879, 7581, 8180, 7483)
NOISE_DATA_STDS = (378, 1064, 493, 582, 688, 593, 474, 697, 475, 688, 421, 455)
SPEECH_DATA_STDS = (555, 505, 567, 524, 585, 1231, 509, 828, 492, 1540, 1079, 850)

MAX_SPEECH_FRAMES = 6
MIN_STD = 384


class Mode(IntEnum):
    """Aggressiveness of the detector; higher modes report speech less readily."""

    QUALITY = 0
    LOW_BITRATE = 1
    AGGRESSIVE = 2
    VERY_AGGRESSIVE = 3


# Per mode: over-hang limits 1 and 2, local and global thresholds, each for
# 10, 20 and 30 ms frames.
_MODE_SETTINGS: dict[Mode, tuple[tuple[int, int, int], ...]] = {
    Mode.QUALITY: ((8, 4, 3), (14, 7, 5), (24, 21, 24), (57, 48, 57)),
    Mode.LOW_BITRATE: ((8, 4, 3), (14, 7, 5), (37, 32, 37), (100, 80, 100)),
    Mode.AGGRESSIVE: ((6, 3, 2), (9, 5, 3), (82, 78, 82), (285, 260, 285)),
    Mode.VERY_AGGRESSIVE: ((6, 3, 2), (9, 5, 3), (94, 94, 94), (1100, 1050, 1100)),
}


def _insert_position(values: Sequence[int], x: int) -> int | None:
    """Where ``x`` goes among the 16 smallest values, or None if it is not among them."""
    if x < values[7]:
        base = 0
    elif x < values[15]:
        base = 8
    else:
        return None
    if x < values[base + 3]:
        if x < values[base + 1]:
            return base if x < values[base] else base + 1
        return base + 2 if x < values[base + 2] else base + 3
    if x < values[base + 5]:
        return base + 4 if x < values[base + 4] else base + 5
    return base + 6 if x < values[base + 6] else base + 7


def _weighted_average(
    data: MutableSequence[int], channel: int, offset: int, weights: Sequence[int]
) -> int:
    """Shift the channel's Gaussian means by ``offset`` and return their weighted sum."""
    total = 0
    for k in range(NUM_GAUSSIANS):
        index = channel + k * NUM_CHANNELS
        data[index] = wrap16(data[index] + offset)
        total = wrap32(total + data[index] * weights[index])
    return total


def _signed_div(num: int, den: int) -> int:
    """Divide by magnitude and restore the sign, as the model update does."""
    den = wrap16(den)
    if num > 0:
        return wrap16(div_w32_w16(num, den))
    return wrap16(-wrap16(div_w32_w16(wrap32(-num), den)))


class SpeechModel:
    """Adaptive noise and speech GMMs with hang-over smoothing of the decision."""

    def __init__(self, mode: Mode | int = Mode.QUALITY) -> None:
        self.reset()
        self.set_mode(mode)

    def reset(self) -> None:
        """Restore the initial model parameters and the default mode."""
        self.noise_means = list(NOISE_DATA_MEANS)
        self.speech_means = list(SPEECH_DATA_MEANS)
        self.noise_stds = list(NOISE_DATA_STDS)
        self.speech_stds = list(SPEECH_DATA_STDS)
        self.frame_counter = 0
        self.over_hang = 0
        self.num_of_speech = 0
        self.ages = [[0] * _WINDOW for _ in range(NUM_CHANNELS)]
        self.low_values = [[_EMPTY_VALUE] * _WINDOW for _ in range(NUM_CHANNELS)]
        self.mean_value = [_DEFAULT_MEDIAN] * NUM_CHANNELS
        self.set_mode(Mode.QUALITY)

    def set_mode(self, mode: Mode | int) -> None:
        """Load the thresholds of an aggressiveness mode (0 to 3)."""
        try:
            mode = Mode(mode)
        except ValueError:
            raise ValueError(f"invalid aggressiveness mode: {mode!r}") from None
        over1, over2, local, total = _MODE_SETTINGS[mode]
        self.mode = mode
        self.over_hang_max_1 = list(over1)
        self.over_hang_max_2 = list(over2)
        self.individual = list(local)
        self.total = list(total)

    def find_minimum(self, feature_value: int, channel: int) -> int:
        """Update the channel's smallest recent values and return the smoothed minimum.

        The minimum is the median of the five smallest values of the last 100
        frames; until a frame has been counted it stays at 1600.
        """
        if not 0 <= channel < NUM_CHANNELS:
            raise ValueError(f"channel must be in 0..{NUM_CHANNELS - 1}, got {channel}")
        ages = self.ages[channel]
        values = self.low_values[channel]

        # Age every value; a value that has reached the maximum age is dropped
        # and the larger ones move down (the moved value skips this aging round).
        for i in range(_WINDOW):
            if ages[i] != _MAX_AGE:
                ages[i] += 1
            else:
                del ages[i]
                del values[i]
                ages.append(_MAX_AGE + 1)
                values.append(_EMPTY_VALUE)

        position = _insert_position(values, feature_value)
        if position is not None:
            values.insert(position, feature_value)
            values.pop()
            ages.insert(position, 1)
            ages.pop()

        current_median = _DEFAULT_MEDIAN
        if self.frame_counter > 2:
            current_median = values[2]
        elif self.frame_counter > 0:
            current_median = values[0]

        alpha = 0
        mean = self.mean_value[channel]
        if self.frame_counter > 0:
            alpha = _SMOOTHING_DOWN if current_median < mean else _SMOOTHING_UP
        acc = wrap32((alpha + 1) * mean + (INT16_MAX - alpha) * current_median + 16384)
        self.mean_value[channel] = wrap16(acc >> 15)
        return self.mean_value[channel]

    def decide(self, features: Sequence[int], total_power: int, frame_length: int) -> int:
        """Decide on one frame and adapt the model.

        ``features`` are the six band log-energies in Q4 and ``frame_length``
        the frame size at 8 kHz (80, 160 or 240). Returns 0 for noise, 1 for
        speech, or more than 1 while speech is held over.
        """
        if len(features) != NUM_CHANNELS:
            raise ValueError(f"expected {NUM_CHANNELS} features, got {len(features)}")
        setting = {80: 0, 160: 1}.get(frame_length, 2)
        overhead1 = self.over_hang_max_1[setting]
        overhead2 = self.over_hang_max_2[setting]
        individual_test = self.individual[setting]
        total_test = self.total[setting]

        vadflag = 0
        if total_power > MIN_ENERGY:
            vadflag = self._update(features, individual_test, total_test)
            self.frame_counter = wrap32(self.frame_counter + 1)

        if not vadflag:
            if self.over_hang > 0:
                vadflag = 2 + self.over_hang
                self.over_hang -= 1
            self.num_of_speech = 0
        else:
            self.num_of_speech += 1
            if self.num_of_speech > MAX_SPEECH_FRAMES:
                self.num_of_speech = MAX_SPEECH_FRAMES
                self.over_hang = overhead2
            else:
                self.over_hang = overhead1
        return vadflag

    def _update(self, features: Sequence[int], individual_test: int, total_test: int) -> int:
        delta_n = [0] * TABLE_SIZE
        delta_s = [0] * TABLE_SIZE
        ngprvec = [0] * TABLE_SIZE
        sgprvec = [0] * TABLE_SIZE
        sum_log_likelihood_ratios = 0
        vadflag = 0

        # Likelihood ratio test per channel, combined into a global test.
        for channel in range(NUM_CHANNELS):
            h0_test = 0
            h1_test = 0
            noise_probability = [0] * NUM_GAUSSIANS
            speech_probability = [0] * NUM_GAUSSIANS
            for k in range(NUM_GAUSSIANS):
                g = channel + k * NUM_CHANNELS
                prob, delta_n[g] = gaussian_probability(
                    features[channel], self.noise_means[g], self.noise_stds[g]
                )
                noise_probability[k] = wrap32(NOISE_DATA_WEIGHTS[g] * prob)
                h0_test = wrap32(h0_test + noise_probability[k])

                prob, delta_s[g] = gaussian_probability(
                    features[channel], self.speech_means[g], self.speech_stds[g]
                )
                speech_probability[k] = wrap32(SPEECH_DATA_WEIGHTS[g] * prob)
                h1_test = wrap32(h1_test + speech_probability[k])

            shifts_h0 = 31 if h0_test == 0 else norm_w32(h0_test)
            shifts_h1 = 31 if h1_test == 0 else norm_w32(h1_test)
            log_likelihood_ratio = wrap16(shifts_h0 - shifts_h1)

            sum_log_likelihood_ratios = wrap32(
                sum_log_likelihood_ratios + log_likelihood_ratio * SPECTRUM_WEIGHT[channel]
            )
            if log_likelihood_ratio * 4 > individual_test:
                vadflag = 1

            h0 = wrap16(h0_test >> 12)
            if h0 > 0:
                scaled = wrap32((noise_probability[0] & 0xFFFFF000) << 2)
                ngprvec[channel] = wrap16(div_w32_w16(scaled, h0))
                ngprvec[channel + NUM_CHANNELS] = wrap16(16384 - ngprvec[channel])
            else:
                ngprvec[channel] = 16384

            h1 = wrap16(h1_test >> 12)
            if h1 > 0:
                scaled = wrap32((speech_probability[0] & 0xFFFFF000) << 2)
                sgprvec[channel] = wrap16(div_w32_w16(scaled, h1))
                sgprvec[channel + NUM_CHANNELS] = wrap16(16384 - sgprvec[channel])

        if sum_log_likelihood_ratios >= total_test:
            vadflag = 1

        maxspe = 12800
        for channel in range(NUM_CHANNELS):
            feature = features[channel]
            feature_minimum = self.find_minimum(feature, channel)
            noise_global_mean = _weighted_average(
                self.noise_means, channel, 0, NOISE_DATA_WEIGHTS
            )
            global_noise_q8 = wrap16(noise_global_mean >> 6)

            for k in range(NUM_GAUSSIANS):
                g = channel + k * NUM_CHANNELS
                nmk = self.noise_means[g]
                smk = self.speech_means[g]
                nsk = self.noise_stds[g]
                ssk = self.speech_stds[g]

                nmk2 = nmk
                if not vadflag:
                    delt = wrap16((ngprvec[g] * delta_n[g]) >> 11)
                    nmk2 = wrap16(nmk + wrap16((delt * _NOISE_UPDATE_CONST) >> 22))

                # Long term correction of the noise mean, kept within bounds.
                ndelt = wrap16((feature_minimum << 4) - global_noise_q8)
                nmk3 = wrap16(nmk2 + wrap16((ndelt * _BACK_ETA) >> 9))
                nmk3 = max(nmk3, wrap16((k + 5) << 7))
                nmk3 = min(nmk3, wrap16((72 + k - channel) << 7))
                self.noise_means[g] = nmk3

                if vadflag:
                    delt = wrap16((sgprvec[g] * delta_s[g]) >> 11)
                    step = wrap16((delt * _SPEECH_UPDATE_CONST) >> 21)
                    smk2 = wrap16(smk + ((step + 1) >> 1))
                    maxmu = maxspe + 640
                    smk2 = max(smk2, MINIMUM_MEAN[k])
                    smk2 = min(smk2, maxmu)
                    self.speech_means[g] = smk2

                    distance = wrap16(feature - ((smk + 4) >> 3))
                    acc = wrap32(((delta_s[g] * distance) >> 3) - 4096)
                    acc = wrap32((sgprvec[g] >> 2) * acc) >> 4
                    step = _signed_div(acc, ssk * 10)
                    step = wrap16(step + 128)
                    ssk = max(wrap16(ssk + (step >> 8)), MIN_STD)
                    self.speech_stds[g] = ssk
                else:
                    distance = wrap16(feature - (nmk >> 3))
                    acc = wrap32(((delta_n[g] * distance) >> 3) - 4096)
                    acc = wrap32(((ngprvec[g] + 2) >> 2) * acc) >> 14
                    step = _signed_div(acc, nsk)
                    step = wrap16(step + 32)
                    nsk = max(wrap16(nsk + (step >> 6)), MIN_STD)
                    self.noise_stds[g] = nsk

            # Separate the models if they are too close.
            noise_global_mean = _weighted_average(
                self.noise_means, channel, 0, NOISE_DATA_WEIGHTS
            )
            speech_global_mean = _weighted_average(
                self.speech_means, channel, 0, SPEECH_DATA_WEIGHTS
            )
            diff = wrap16(wrap16(speech_global_mean >> 9) - wrap16(noise_global_mean >> 9))
            if diff < MINIMUM_DIFFERENCE[channel]:
                gap = wrap16(MINIMUM_DIFFERENCE[channel] - diff)
                speech_shift = wrap16((13 * gap) >> 2)
                noise_shift = wrap16((3 * gap) >> 2)
                speech_global_mean = _weighted_average(
                    self.speech_means, channel, speech_shift, SPEECH_DATA_WEIGHTS
                )
                noise_global_mean = _weighted_average(
                    self.noise_means, channel, wrap16(-noise_shift), NOISE_DATA_WEIGHTS
                )

            # Keep the speech and noise means from drifting too far.
            maxspe = MAXIMUM_SPEECH[channel]
            excess = wrap16(speech_global_mean >> 7)
            if excess > maxspe:
                excess -= maxspe
                for k in range(NUM_GAUSSIANS):
                    g = channel + k * NUM_CHANNELS
                    self.speech_means[g] = wrap16(self.speech_means[g] - excess)

            excess = wrap16(noise_global_mean >> 7)
            if excess > MAXIMUM_NOISE[channel]:
                excess -= MAXIMUM_NOISE[channel]
                for k in range(NUM_GAUSSIANS):
                    g = channel + k * NUM_CHANNELS
                    self.noise_means[g] = wrap16(self.noise_means[g] - excess)

        return vadflag