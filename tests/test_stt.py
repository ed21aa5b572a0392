"""
Tests for audio decoding, the Whisper garbage filter and the STT router.
The Whisper model itself is replaced by a fake.

Run with: python -m pytest tests/test_stt.py -v
"""

import io
import wave
from types import SimpleNamespace
from unittest.mock import MagicMock

import numpy as np
import pytest

from pagepilot.core.errors import TranscriptionError
from pagepilot.stt.audio import decode_audio_bytes, decode_wav_bytes, is_wav, resample_linear
from pagepilot.stt.stt_router import STTRouter
from pagepilot.stt.whisper_engine import WhisperEngine


def make_wav(samples, rate=16000, channels=1):
    """int16 PCM WAV bytes from an int16 array (interleaved when stereo)."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(rate)
        wf.writeframes(np.asarray(samples, dtype=np.int16).tobytes())
    return buf.getvalue()


def fake_model(*texts):
    model = MagicMock()
    model.transcribe.return_value = ([SimpleNamespace(text=t) for t in texts], None)
    return model


# ============================================================================
# AUDIO DECODING
# ============================================================================

class TestDecodeWav:

    def test_mono_16k(self):
        audio = decode_wav_bytes(make_wav([0, 16384, -16384, 32767]))
        assert audio.dtype == np.float32
        assert audio.shape == (4,)
        assert audio[1] == pytest.approx(0.5)
        assert audio[2] == pytest.approx(-0.5)

    def test_stereo_is_downmixed(self):
        # frames: (L=16384, R=0), (L=0, R=-16384)
        audio = decode_wav_bytes(make_wav([16384, 0, 0, -16384], channels=2))
        assert audio.shape == (2,)
        assert audio[0] == pytest.approx(0.25)
        assert audio[1] == pytest.approx(-0.25)

    def test_resampled_to_target_rate(self):
        audio = decode_wav_bytes(make_wav(np.zeros(8000), rate=8000))
        assert len(audio) == 16000

    def test_garbage_is_transcription_error(self):
        with pytest.raises(TranscriptionError):
            decode_wav_bytes(b"RIFF\x00\x00\x00\x00WAVEjunk")

    def test_is_wav(self):
        assert is_wav(make_wav([0]))
        assert not is_wav(b"\x1aE\xdf\xa3webm")

    def test_empty_upload(self):
        with pytest.raises(TranscriptionError):
            decode_audio_bytes(b"")

    def test_resample_same_rate_is_identity(self):
        audio = np.array([0.1, 0.2], dtype=np.float32)
        assert np.array_equal(resample_linear(audio, 16000, 16000), audio)


# ============================================================================
# WHISPER ENGINE
# ============================================================================

class TestWhisperEngine:

    def test_segments_are_joined(self):
        engine = WhisperEngine(model=fake_model(" go to ", "the products page "))
        assert engine.transcribe(np.zeros(1600, dtype=np.float32)) == "go to the products page"

    def test_empty_audio(self):
        model = fake_model("anything")
        engine = WhisperEngine(model=model)
        assert engine.transcribe(np.zeros(0, dtype=np.float32)) == ""
        model.transcribe.assert_not_called()

    @pytest.mark.parametrize("text", [
        "the the the the the the the the",
        "aaaaaaaaah",
        "...!!! ??",
        "a",
    ])
    def test_garbage_is_dropped(self, text):
        engine = WhisperEngine(model=fake_model(text))
        assert engine.transcribe(np.zeros(1600, dtype=np.float32)) == ""

    def test_model_failure_raises(self):
        model = MagicMock()
        model.transcribe.side_effect = RuntimeError("cuda oom")
        engine = WhisperEngine(model=model)
        with pytest.raises(TranscriptionError):
            engine.transcribe(np.zeros(1600, dtype=np.float32))


# ============================================================================
# STT ROUTER
# ============================================================================

class TestSTTRouter:

    def test_transcribe_bytes(self):
        router = STTRouter(engine=WhisperEngine(model=fake_model("clear all filters")))
        assert router.transcribe_bytes(make_wav(np.zeros(1600)), "clip.wav") == "clear all filters"

    def test_no_speech_is_an_error(self):
        router = STTRouter(engine=WhisperEngine(model=fake_model("")))
        with pytest.raises(TranscriptionError):
            router.transcribe_bytes(make_wav(np.zeros(1600)))
