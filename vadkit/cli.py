"""Command line tool that prints one voice activity decision per frame of a WAV file."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Iterator, Sequence
from os import PathLike
from typing import BinaryIO

from vadkit.detector import Vad, VadError, valid_rate_and_frame_length
from vadkit.model import Mode

WAVE_HEADER_BYTES = 44
DEFAULT_PATH = "wave_data/wave_1.wav"
DEFAULT_MODE = Mode.AGGRESSIVE
DEFAULT_SAMPLE_RATE = 16000
DEFAULT_FRAME_SAMPLES = 160


def iter_frames(stream: BinaryIO, frame_bytes: int) -> Iterator[bytes]:
    """Yield whole chunks of ``frame_bytes`` bytes; a trailing partial chunk is dropped."""
    if frame_bytes <= 0:
        raise ValueError(f"frame size must be positive, got {frame_bytes}")
    while True:
        chunk = stream.read(frame_bytes)
        if len(chunk) != frame_bytes:
            return
        yield chunk


def classify_wave(
    path: str | PathLike[str],
    mode: Mode | int = DEFAULT_MODE,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    frame_samples: int = DEFAULT_FRAME_SAMPLES,
) -> list[int]:
    """Decide on every whole frame of a 16-bit mono WAV file with a 44-byte header."""
    if not valid_rate_and_frame_length(sample_rate, frame_samples):
        raise VadError(
            f"invalid combination of sample rate {sample_rate} Hz"
            f" and frame length {frame_samples}"
        )
    vad = Vad(mode)
    with open(path, "rb") as stream:
        stream.seek(WAVE_HEADER_BYTES)
        return [vad.process(sample_rate, frame) for frame in iter_frames(stream, frame_samples * 2)]


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vadkit", description="Print a voice activity decision for every frame."
    )
    parser.add_argument("path", nargs="?", default=DEFAULT_PATH, help="16-bit PCM WAV file")
    parser.add_argument(
        "-m", "--mode", type=int, default=int(DEFAULT_MODE), help="aggressiveness, 0 to 3"
    )
    parser.add_argument(
        "-r", "--rate", type=int, default=DEFAULT_SAMPLE_RATE, help="sample rate in Hz"
    )
    parser.add_argument(
        "-f", "--frame", type=int, default=DEFAULT_FRAME_SAMPLES, help="samples per frame"
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command; returns the exit status."""
    args = _parser().parse_args(argv)
    try:
        decisions = classify_wave(args.path, args.mode, args.rate, args.frame)
    except VadError as exc:
        print(f"vad process failed: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"cannot read {args.path}: {exc}", file=sys.stderr)
        return 1
    # The output ends with a 0 that marks the end of the stream.
    print("".join(str(decision) for decision in decisions) + "0")
    return 0


if __name__ == "__main__":
    sys.exit(main())