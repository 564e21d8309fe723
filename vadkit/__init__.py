"""Fixed-point voice activity detection for 16-bit PCM audio, with a WAV command line tool."""

__version__ = "0.1.0"

__all__ = ["cli", "core", "detector", "filterbank", "gmm", "model", "resample", "spl"]