"""
STT router module.
Turns uploaded recordings into utterance text via the Whisper engine.
"""
from typing import Optional

import numpy as np

from pagepilot.core.config import Config
from pagepilot.core.errors import TranscriptionError
from pagepilot.core.logger import get_logger
from pagepilot.stt.audio import decode_audio_bytes
from pagepilot.stt.whisper_engine import WhisperEngine


class STTRouter:
    """STT engine router"""

    def __init__(
        self,
        whisper_model: str = Config.WHISPER_MODEL,
        whisper_device: str = Config.WHISPER_DEVICE,
        whisper_compute_type: str = Config.WHISPER_COMPUTE_TYPE,
        engine: Optional[WhisperEngine] = None,
        language: str = "en"
    ):
        self.logger = get_logger()
        self.language = language
        self.whisper_engine = engine or WhisperEngine(
            model_size=whisper_model,
            device=whisper_device,
            compute_type=whisper_compute_type
        )
        self.logger.info("[STT] Router: Whisper engine ready")

    def transcribe(self, audio: np.ndarray) -> str:
        """Transcribe float32 mono audio; empty string means nothing usable was heard."""
        return self.whisper_engine.transcribe(audio, self.language)

    def transcribe_bytes(self, audio: bytes, filename: str = "") -> str:
        """
        Transcribe an uploaded recording. No retries.

        Raises:
            TranscriptionError: undecodable audio, model failure, or no speech
        """
        samples = decode_audio_bytes(audio)
        self.logger.debug(
            f"[STT] {filename or 'upload'}: {len(audio)} bytes, {len(samples) / Config.SAMPLE_RATE:.2f}s"
        )
        text = self.transcribe(samples)
        if not text:
            raise TranscriptionError("No speech recognized")
        return text
