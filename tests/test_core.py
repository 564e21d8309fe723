import random

import pytest

from vadkit.core import VadCore
from vadkit.filterbank import downsample
from vadkit.model import Mode


def _noise(count, amplitude=10000, seed=1):
    rng = random.Random(seed)
    return [rng.randint(-amplitude, amplitude) for _ in range(count)]


def test_new_core_starts_active_in_quality_mode():
    core = VadCore()
    assert core.vad == 1
    assert core.mode is Mode.QUALITY
    assert core.downsampling_filter_states == [0, 0, 0, 0]


@pytest.mark.parametrize(
    "method, length",
    [
        ("calc_vad_8khz", 80),
        ("calc_vad_8khz", 240),
        ("calc_vad_16khz", 160),
        ("calc_vad_16khz", 480),
        ("calc_vad_32khz", 320),
        ("calc_vad_32khz", 960),
        ("calc_vad_48khz", 480),
        ("calc_vad_48khz", 1440),
    ],
)
def test_silence_is_not_speech(method, length):
    core = VadCore()
    assert getattr(core, method)([0] * length) == 0
    assert core.vad == 0
    assert core.model.frame_counter == 0


def test_loud_frame_updates_model():
    core = VadCore()
    core.calc_vad_8khz(_noise(160))
    assert core.model.frame_counter == 1


def test_results_are_deterministic():
    frames = [_noise(320, seed=s) for s in range(10)]
    first, second = VadCore(Mode.AGGRESSIVE), VadCore(Mode.AGGRESSIVE)
    a = [first.calc_vad_16khz(f) for f in frames]
    b = [second.calc_vad_16khz(f) for f in frames]
    assert a == b
    assert all(value >= 0 for value in a)


def test_reset_restores_fresh_behaviour():
    frames = [_noise(240, seed=s) for s in range(8)]
    core = VadCore()
    before = [core.calc_vad_8khz(f) for f in frames]
    core.reset()
    assert core.vad == 1
    assert core.model.frame_counter == 0
    after = [core.calc_vad_8khz(f) for f in frames]
    assert before == after


def test_16khz_matches_downsampled_8khz():
    frame = _noise(320, seed=7)
    wide = VadCore()
    narrow = VadCore()
    state = [0, 0]
    assert wide.calc_vad_16khz(frame) == narrow.calc_vad_8khz(downsample(frame, state))
    assert wide.downsampling_filter_states[:2] == state


def test_32khz_updates_both_filter_stages():
    frame = _noise(640, seed=3)
    wide = VadCore()
    narrow = VadCore()
    state = [0, 0]
    assert wide.calc_vad_32khz(frame) == narrow.calc_vad_16khz(downsample(frame, state))
    assert wide.downsampling_filter_states[2:] == state
    assert wide.downsampling_filter_states[:2] == narrow.downsampling_filter_states[:2]
    assert any(wide.downsampling_filter_states[2:])
    assert any(wide.downsampling_filter_states[:2])


def test_48khz_blocks_resample_from_frame_start():
    block = _noise(480, seed=4)
    other = _noise(480, seed=5)
    one = VadCore()
    two = VadCore()
    assert one.calc_vad_48khz(block + other) == two.calc_vad_48khz(block + block)
    assert one.resampler.s_16_8 == two.resampler.s_16_8


def test_set_mode_changes_mode():
    core = VadCore()
    core.set_mode(3)
    assert core.mode is Mode.VERY_AGGRESSIVE
    core.reset()
    assert core.mode is Mode.QUALITY


@pytest.mark.parametrize("mode", [-1, 4])
def test_invalid_mode_raises(mode):
    with pytest.raises(ValueError):
        VadCore().set_mode(mode)
    with pytest.raises(ValueError):
        VadCore(mode)


@pytest.mark.parametrize(
    "method, length",
    [
        ("calc_vad_8khz", 320),
        ("calc_vad_16khz", 640),
        ("calc_vad_32khz", 1280),
        ("calc_vad_48khz", 1920),
        ("calc_vad_48khz", 500),
        ("calc_vad_48khz", 0),
    ],
)
def test_bad_frame_length_raises(method, length):
    with pytest.raises(ValueError):
        getattr(VadCore(), method)([0] * length)