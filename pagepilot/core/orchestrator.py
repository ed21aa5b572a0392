"""
Turn orchestrator.

One user turn: (audio ->) utterance -> classifier -> dispatcher.
Only one utterance is classified at a time; a second one arriving while
the first is still classifying is rejected rather than queued.
"""
import threading
import time
from typing import Iterable, Optional, Protocol

from pagepilot.core.actions import Action
from pagepilot.core.destinations import DEFAULT_DESTINATIONS, Destination
from pagepilot.core.dispatch_controller import DispatchController, DispatchOutcome, OutcomeStatus
from pagepilot.core.errors import (
    MSG_BUSY,
    MSG_SERVICE_FAILED,
    MSG_TRANSCRIPTION_FAILED,
    ServiceError,
    TranscriptionError,
)
from pagepilot.core.logger import get_logger


class SupportsClassify(Protocol):
    def classify(
        self,
        utterance: str,
        destinations: Iterable[Destination],
        current_destination_id: Optional[str] = None,
    ) -> Action:
        ...


class SupportsTranscribe(Protocol):
    def transcribe_bytes(self, audio: bytes, filename: str = "") -> str:
        ...


class PagePilot:
    """Glue between the classifier (local or remote) and the dispatcher."""

    def __init__(
        self,
        classifier: SupportsClassify,
        dispatcher: DispatchController,
        destinations: Optional[Iterable[Destination]] = None,
        stt: Optional[SupportsTranscribe] = None,
    ):
        self.logger = get_logger()
        self.classifier = classifier
        self.dispatcher = dispatcher
        self.destinations = list(destinations) if destinations is not None else list(DEFAULT_DESTINATIONS)
        self.stt = stt
        self.last_utterance = ""
        self._turn_lock = threading.Lock()

    def handle_utterance(self, text: str) -> DispatchOutcome:
        if not self._turn_lock.acquire(blocking=False):
            self.logger.warning(f"[DISPATCH] busy, rejecting '{text}'")
            return DispatchOutcome(OutcomeStatus.REJECTED, MSG_BUSY)

        try:
            self.last_utterance = text
            self.dispatcher.begin_turn()
            current = self.dispatcher.state.active_destination_id

            start_time = time.time()
            try:
                action = self.classifier.classify(text, self.destinations, current)
            except ServiceError as e:
                self.logger.error(f"[API] classification failed: {e}")
                self.dispatcher.end_turn()
                return DispatchOutcome(OutcomeStatus.FAILED, MSG_SERVICE_FAILED)

            elapsed_ms = int((time.time() - start_time) * 1000)
            self.logger.debug(f"[DISPATCH] classified in {elapsed_ms}ms: {action}")
            return self.dispatcher.dispatch(action)
        finally:
            self._turn_lock.release()

    def handle_audio(self, audio: bytes, filename: str = "") -> DispatchOutcome:
        """Transcribe a recording, then handle it as an utterance. No retries."""
        if self.stt is None:
            self.logger.error("[STT] no transcriber configured")
            return DispatchOutcome(OutcomeStatus.FAILED, MSG_TRANSCRIPTION_FAILED)

        try:
            text = self.stt.transcribe_bytes(audio, filename)
        except TranscriptionError as e:
            self.logger.warning(f"[STT] {e}")
            return DispatchOutcome(OutcomeStatus.FAILED, MSG_TRANSCRIPTION_FAILED)

        self.logger.info(f"[STT] heard: '{text}'")
        return self.handle_utterance(text)
