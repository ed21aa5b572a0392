"""
Whisper STT engine using faster-whisper.
Transcribes audio with repetition/garbage filtering.
"""
from collections import Counter
from typing import Any, Optional

import numpy as np

from pagepilot.core.config import Config
from pagepilot.core.errors import TranscriptionError
from pagepilot.core.logger import get_logger


class WhisperEngine:
    """Faster-Whisper STT engine"""

    def __init__(
        self,
        model_size: str = Config.WHISPER_MODEL,
        device: str = Config.WHISPER_DEVICE,
        compute_type: str = Config.WHISPER_COMPUTE_TYPE,
        model: Optional[Any] = None
    ):
        """
        Initialize Whisper engine

        Args:
            model_size: Model size (tiny, base, small, medium, large)
            device: Device to use (cpu, cuda)
            compute_type: Compute type (int8, int16, float16, float32)
            model: Preloaded model object (skips loading)
        """
        self.logger = get_logger()
        self.model_size = model_size
        self.device = device
        self.compute_type = compute_type
        self.model = model

        if self.model is None:
            self._load_model()

    def _load_model(self) -> None:
        from faster_whisper import WhisperModel

        self.logger.info(
            f"[STT] Loading Whisper model: {self.model_size} "
            f"(device={self.device}, compute_type={self.compute_type})"
        )
        try:
            self.model = WhisperModel(
                self.model_size,
                device=self.device,
                compute_type=self.compute_type
            )
        except Exception as e:
            self.logger.error(f"[STT] Failed to load Whisper model: {e}")
            raise
        self.logger.info("[STT] Whisper model loaded")

    def transcribe(self, audio: np.ndarray, language: str = "en") -> str:
        """
        Transcribe audio to text

        Args:
            audio: Audio data as float32 mono at 16kHz
            language: Language code (default: en)

        Returns:
            Transcribed text, or empty string if no speech/garbage

        Raises:
            TranscriptionError: if the model itself fails
        """
        if len(audio) == 0:
            return ""

        try:
            segments, _info = self.model.transcribe(
                audio,
                language=language,
                beam_size=5,
                vad_filter=True,
                word_timestamps=False
            )
            full_text = " ".join(segment.text.strip() for segment in segments).strip()
        except Exception as e:
            self.logger.error(f"[STT] Transcription error: {e}")
            raise TranscriptionError(str(e)) from e

        if not self._is_valid_transcript(full_text):
            return ""
        return full_text

    def _is_valid_transcript(self, text: str) -> bool:
        if len(text) < Config.MIN_TRANSCRIPT_LENGTH:
            self.logger.debug(f"[STT] Transcript too short: '{text}'")
            return False

        if self._is_repetition_spam(text):
            self.logger.warning(f"[STT] Repetition spam detected: '{text}'")
            return False

        # Mostly non-alphabetic output is decoder noise
        alpha_count = sum(c.isalpha() for c in text)
        if alpha_count / len(text) < 0.3:
            self.logger.debug(f"[STT] Too few alphabetic characters: '{text}'")
            return False

        return True

    def _is_repetition_spam(self, text: str) -> bool:
        """True if one token repeats past MAX_TOKEN_REPEATS or a token stutters ("aaaaaa")"""
        tokens = text.lower().split()
        if not tokens:
            return False

        max_repeats = max(Counter(tokens).values())
        if max_repeats > Config.MAX_TOKEN_REPEATS:
            self.logger.debug(
                f"[STT] Token repetition: max={max_repeats}, threshold={Config.MAX_TOKEN_REPEATS}"
            )
            return True

        return any(len(token) > 3 and _max_run(token) > 4 for token in tokens)


def _max_run(s: str) -> int:
    """Longest run of one repeated character"""
    best = run = 1
    for prev, char in zip(s, s[1:]):
        run = run + 1 if char == prev else 1
        best = max(best, run)
    return best if s else 0
