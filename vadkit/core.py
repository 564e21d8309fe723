"""Voice activity decision for 8, 16, 32 and 48 kHz frames."""

from __future__ import annotations

from collections.abc import Sequence

from vadkit.filterbank import FeatureExtractor, downsample
from vadkit.model import Mode, SpeechModel
from vadkit.resample import FRAME_LENGTH_48KHZ, FRAME_LENGTH_8KHZ, Resampler48To8

MAX_FRAME_LENGTH_8KHZ = 240


def _check_length(frame: Sequence[int], limit: int, rate: str) -> None:
    if len(frame) > limit:
        raise ValueError(f"a {rate} frame holds at most {limit} samples, got {len(frame)}")


class VadCore:
    """Feature extraction and the GMM decision, with the resampling state per rate.

    Every ``calc_vad_*`` method returns 0 for noise, 1 for speech, or a value
    above 1 while speech is being held over.
    """

    def __init__(self, mode: Mode | int = Mode.QUALITY) -> None:
        self.model = SpeechModel()
        self.features = FeatureExtractor()
        self.resampler = Resampler48To8()
        self.reset()
        self.set_mode(mode)

    def reset(self) -> None:
        """Restore every filter state and model parameter, and the default mode."""
        self.vad = 1
        self.downsampling_filter_states = [0, 0, 0, 0]
        self.resampler.reset()
        self.features.reset()
        self.model.reset()

    @property
    def mode(self) -> Mode:
        """The current aggressiveness mode."""
        return self.model.mode

    def set_mode(self, mode: Mode | int) -> None:
        """Switch to an aggressiveness mode (0 to 3); raises ValueError otherwise."""
        self.model.set_mode(mode)

    def _downsample(self, frame: Sequence[int], first: int) -> list[int]:
        state = self.downsampling_filter_states[first : first + 2]
        out = downsample(frame, state)
        self.downsampling_filter_states[first : first + 2] = state
        return out

    def calc_vad_8khz(self, frame: Sequence[int]) -> int:
        """Decide on a frame sampled at 8 kHz."""
        _check_length(frame, MAX_FRAME_LENGTH_8KHZ, "8 kHz")
        features, total_power = self.features.extract(frame)
        self.vad = self.model.decide(features, total_power, len(frame))
        return self.vad

    def calc_vad_16khz(self, frame: Sequence[int]) -> int:
        """Decide on a frame sampled at 16 kHz, downsampled to 8 kHz first."""
        _check_length(frame, 2 * MAX_FRAME_LENGTH_8KHZ, "16 kHz")
        return self.calc_vad_8khz(self._downsample(frame, 0))

    def calc_vad_32khz(self, frame: Sequence[int]) -> int:
        """Decide on a frame sampled at 32 kHz, downsampled 32 -> 16 -> 8 kHz first."""
        _check_length(frame, 4 * MAX_FRAME_LENGTH_8KHZ, "32 kHz")
        wideband = self._downsample(frame, 2)
        return self.calc_vad_8khz(self._downsample(wideband, 0))

    def calc_vad_48khz(self, frame: Sequence[int]) -> int:
        """Decide on a frame sampled at 48 kHz, resampled to 8 kHz first.

        The frame must hold a whole number of 10 ms blocks. As in the reference
        behaviour, every block is resampled from the start of the frame.
        """
        _check_length(frame, 6 * MAX_FRAME_LENGTH_8KHZ, "48 kHz")
        blocks, rest = divmod(len(frame), FRAME_LENGTH_48KHZ)
        if rest or not blocks:
            raise ValueError(
                f"a 48 kHz frame must hold a multiple of {FRAME_LENGTH_48KHZ} samples,"
                f" got {len(frame)}"
            )
        first_block = frame[:FRAME_LENGTH_48KHZ]
        narrowband: list[int] = []
        for _ in range(blocks):
            narrowband.extend(self.resampler.process(first_block))
        assert len(narrowband) == blocks * FRAME_LENGTH_8KHZ
        return self.calc_vad_8khz(narrowband)