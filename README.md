# vadkit

vadkit decides, frame by frame, whether a stretch of 16-bit mono PCM audio
holds speech. It uses a fixed-point Gaussian mixture model over six frequency
bands. The model adapts to the background noise as it runs. All arithmetic is
integer arithmetic with 16- and 32-bit wrap-around, so the decisions do not
depend on the platform.

## Installing

```
pip install .
```

The package needs only the Python standard library and Python 3.10 or later.
To run the tests, install the `test` extra (`pip install .[test]`) and run
`pytest`.

## Frames and sample rates

Audio is processed in frames of 10, 20 or 30 ms at one of these sample rates:

| Rate (Hz) | 10 ms | 20 ms | 30 ms |
|-----------|-------|-------|-------|
| 8000      | 80    | 160   | 240   |
| 16000     | 160   | 320   | 480   |
| 32000     | 320   | 640   | 960   |
| 48000     | 480   | 960   | 1440  |

`vadkit.detector.valid_rate_and_frame_length(rate, frame_length)` returns
`True` when a rate and a frame length (in samples) go together.

Frames at 16 and 32 kHz are halved to 8 kHz by all-pass filters. Frames at
48 kHz are resampled to 8 kHz in 10 ms blocks. For 20 and 30 ms frames at
48 kHz, each block is resampled from the first 480 samples of the frame, not
from successive parts of it. This matches the reference behaviour the
decisions are pinned to.

## Aggressiveness

`vadkit.model.Mode` runs from 0 to 3:

- `QUALITY` (0)
- `LOW_BITRATE` (1)
- `AGGRESSIVE` (2)
- `VERY_AGGRESSIVE` (3)

A higher mode reports speech less often. When it does report speech, it is
more likely to be right, but more speech is missed. The default is `QUALITY`.

## Using the library

```python
from vadkit.detector import Vad

vad = Vad(mode=2)

# frame: 160 signed 16-bit samples (10 ms at 16 kHz), either as a sequence
# of ints or as 320 bytes of little-endian PCM
decision = vad.process(16000, frame)   # 1 for speech, 0 for no speech
```

Other members of `Vad`:

- `Vad.is_speech(frame, sample_rate)` makes the same decision and returns an
  `Activity` value (`ACTIVE` or `PASSIVE`).
- `Vad.set_mode(mode)` changes the aggressiveness, and `Vad.mode` reports it.
- `Vad.reset()` discards everything the detector has learnt about the signal
  and keeps the current mode.

`VadError` is a subclass of `ValueError`. It is raised for a mode outside 0
to 3, for a rate and frame length that do not go together, and for PCM bytes
of odd length.

The detector keeps state from one frame to the next: the noise and speech
models, the filter memories and a short hangover after speech ends. Feed it
consecutive frames of a single stream, and use a separate `Vad` for each
stream.

## Command line

```
vadkit recording.wav
```

The command skips the first 44 bytes of the file as a WAV header. It reads
the rest as 16-bit little-endian mono samples and prints one digit per whole
frame: `1` for speech, `0` for no speech. A trailing partial frame is
ignored. The line always ends with one extra `0`, which marks the end of the
stream.

Options:

- `path`: the file to read. The default is `wave_data/wave_1.wav`.
- `-m`, `--mode`: aggressiveness from 0 to 3. The default is 2.
- `-r`, `--rate`: the sample rate in Hz. The default is 16000.
- `-f`, `--frame`: samples per frame. The default is 160.

If the mode or the rate and frame size are invalid, or the file cannot be
read, the command prints a message to standard error and exits with status 1.

The same work is available from Python as
`vadkit.cli.classify_wave(path, mode, sample_rate, frame_samples)`, which
returns the list of decisions without the final marker.
`vadkit.cli.iter_frames(stream, frame_bytes)` yields the whole frames of a
binary stream.

## Lower-level pieces

You can also use the stages of the detector one by one:

- `vadkit.spl`: fixed-point helpers such as `wrap16`, `wrap32`, `norm_w32`,
  `div_w32_w16` and `energy`
- `vadkit.resample`: the half-band filters, `resample_48khz_to_32khz` and
  `Resampler48To8`
- `vadkit.filterbank`: the band-splitting filters, `log_of_energy` and
  `FeatureExtractor`, which turns an 8 kHz frame into six log-energy features
- `vadkit.gmm`: `gaussian_probability`
- `vadkit.model`: `SpeechModel`, the adaptive GMM decision with hangover
- `vadkit.core`: `VadCore`, with one entry point per sample rate

## What it does not do

vadkit does not parse WAV headers. The command assumes a 44-byte header, mono
16-bit samples and the sample rate you give it. It neither checks nor reads
these from the file. vadkit does not capture audio from a device, does not
convert other rates or sample formats, and does not cut audio into speech
segments. It only reports a decision for each frame.