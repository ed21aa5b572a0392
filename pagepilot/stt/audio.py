"""
Audio decoding for uploaded recordings.

Everything is converted to float32 mono at Config.SAMPLE_RATE, the format
the Whisper engine expects. WAV is decoded with numpy; other containers
(webm/ogg from a browser recorder) go through faster-whisper's decoder.
"""
import io
import wave

import numpy as np

from pagepilot.core.config import Config
from pagepilot.core.errors import TranscriptionError

_SAMPLE_WIDTH_DTYPES = {1: np.uint8, 2: np.int16, 4: np.int32}


def is_wav(data: bytes) -> bool:
    return len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WAVE"


def resample_linear(audio: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    """Linear-interpolation resample (adequate for speech)"""
    if src_rate == dst_rate or len(audio) == 0:
        return audio.astype(np.float32)
    duration = len(audio) / float(src_rate)
    dst_len = max(1, int(round(duration * dst_rate)))
    src_x = np.linspace(0.0, duration, num=len(audio), endpoint=False)
    dst_x = np.linspace(0.0, duration, num=dst_len, endpoint=False)
    return np.interp(dst_x, src_x, audio).astype(np.float32)


def decode_wav_bytes(data: bytes, target_rate: int = Config.SAMPLE_RATE) -> np.ndarray:
    """
    Decode PCM WAV bytes to float32 mono in [-1, 1] at target_rate.

    Raises:
        TranscriptionError: if the bytes are not a readable PCM WAV
    """
    try:
        with wave.open(io.BytesIO(data), "rb") as wf:
            channels = wf.getnchannels()
            width = wf.getsampwidth()
            rate = wf.getframerate()
            frames = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as e:
        raise TranscriptionError(f"Unreadable WAV data: {e}") from e

    dtype = _SAMPLE_WIDTH_DTYPES.get(width)
    if dtype is None:
        raise TranscriptionError(f"Unsupported WAV sample width: {width} bytes")

    samples = np.frombuffer(frames, dtype=dtype).astype(np.float32)
    if width == 1:
        samples = (samples - 128.0) / 128.0
    else:
        samples = samples / float(2 ** (8 * width - 1))

    if channels > 1:
        usable = len(samples) - (len(samples) % channels)
        samples = samples[:usable].reshape(-1, channels).mean(axis=1)

    return resample_linear(samples, rate, target_rate)


def decode_audio_bytes(data: bytes, target_rate: int = Config.SAMPLE_RATE) -> np.ndarray:
    """Decode any uploaded recording to float32 mono at target_rate."""
    if not data:
        raise TranscriptionError("No audio data")
    if is_wav(data):
        return decode_wav_bytes(data, target_rate)

    from faster_whisper.audio import decode_audio

    try:
        return decode_audio(io.BytesIO(data), sampling_rate=target_rate).astype(np.float32)
    except Exception as e:
        raise TranscriptionError(f"Could not decode audio: {e}") from e
