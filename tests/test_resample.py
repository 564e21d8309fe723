import math

import pytest

from vadkit.resample import (
    Resampler48To8,
    down_by_2_int_to_short,
    down_by_2_short_to_int,
    lp_by_2_int_to_int,
    resample_48khz_to_32khz,
)


def _sine(freq, amplitude, start, count, rate=48000):
    return [
        int(round(amplitude * math.sin(2 * math.pi * freq * n / rate)))
        for n in range(start, start + count)
    ]


def test_down_by_2_int_to_short_silence():
    state = [0] * 8
    assert down_by_2_int_to_short([0] * 160, state) == [0] * 80
    assert state == [0] * 8


def test_lp_by_2_silence():
    state = [0] * 16
    assert lp_by_2_int_to_int([0] * 240, state) == [0] * 240
    assert state == [0] * 16


def test_down_by_2_short_to_int_halves_length():
    state = [0] * 8
    out = down_by_2_short_to_int(_sine(1000, 8000, 0, 480), state)
    assert len(out) == 240
    assert len(state) == 8
    assert any(state)


def test_down_by_2_short_to_int_chunked_matches_whole():
    signal = _sine(700, 12000, 0, 960)
    whole_state = [0] * 8
    whole = down_by_2_short_to_int(signal, whole_state)
    chunk_state = [0] * 8
    chunked = down_by_2_short_to_int(signal[:480], chunk_state)
    chunked += down_by_2_short_to_int(signal[480:], chunk_state)
    assert chunked == whole
    assert chunk_state == whole_state


def test_down_by_2_int_to_short_chunked_matches_whole():
    signal = [x << 15 for x in _sine(300, 9000, 0, 320, rate=16000)]
    whole_state = [0] * 8
    whole = down_by_2_int_to_short(signal, whole_state)
    chunk_state = [0] * 8
    chunked = down_by_2_int_to_short(signal[:160], chunk_state)
    chunked += down_by_2_int_to_short(signal[160:], chunk_state)
    assert chunked == whole
    assert chunk_state == whole_state


def test_lp_by_2_chunked_matches_whole():
    signal = [x << 15 for x in _sine(900, 7000, 0, 480, rate=24000)]
    whole_state = [0] * 16
    whole = lp_by_2_int_to_int(signal, whole_state)
    chunk_state = [0] * 16
    chunked = lp_by_2_int_to_int(signal[:240], chunk_state)
    chunked += lp_by_2_int_to_int(signal[240:], chunk_state)
    assert chunked == whole
    assert chunk_state == whole_state


def test_resample_48_to_32_silence_gives_rounding_offset():
    out = resample_48khz_to_32khz([0] * 246, 80)
    assert out == [1 << 14] * 160


def test_resample_48_to_32_impulse_uses_coefficients():
    data = [0] * 9
    data[3] = 5
    out = resample_48khz_to_32khz(data, 1)
    assert out[0] - (1 << 14) == 23285 * 5
    assert out[1] - (1 << 14) == -3783 * 5


def test_resample_48_to_32_too_short():
    with pytest.raises(ValueError):
        resample_48khz_to_32khz([0] * 245, 80)


def test_resampler_rejects_wrong_frame_length():
    with pytest.raises(ValueError):
        Resampler48To8().process([0] * 479)


def test_resampler_output_length_and_range():
    out = Resampler48To8().process(_sine(440, 30000, 0, 480))
    assert len(out) == 80
    assert all(-32768 <= x <= 32767 for x in out)


def test_resampler_reset_restores_initial_behaviour():
    frame = _sine(600, 15000, 0, 480)
    fresh = Resampler48To8().process(frame)
    resampler = Resampler48To8()
    resampler.process(_sine(2000, 20000, 0, 480))
    resampler.reset()
    assert resampler.process(frame) == fresh


def test_resampler_passes_low_frequency():
    amplitude = 10000
    resampler = Resampler48To8()
    out = []
    for index in range(4):
        out = resampler.process(_sine(500, amplitude, index * 480, 480))
    peak = max(abs(x) for x in out)
    assert 0.7 * amplitude < peak < 1.3 * amplitude


def test_resampler_rejects_high_frequency():
    amplitude = 10000
    resampler = Resampler48To8()
    out = []
    for index in range(4):
        out = resampler.process(_sine(20000, amplitude, index * 480, 480))
    peak = max(abs(x) for x in out)
    assert peak < 0.25 * amplitude


def test_resampler_keeps_dc_level():
    resampler = Resampler48To8()
    out = []
    for _ in range(6):
        out = resampler.process([1000] * 480)
    assert all(abs(x - 1000) < 50 for x in out)