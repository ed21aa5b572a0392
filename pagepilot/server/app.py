"""
Classification service.

FastAPI app exposing the intent classifier and the transcriber to the
browser client:

    GET  /health
    GET  /api/
    POST /api/intent/analyze      {text, pages[], currentPageId?}
    POST /api/speech/transcribe   multipart field "audio"
"""
import asyncio
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pagepilot.core.actions import action_to_response
from pagepilot.core.config import Config
from pagepilot.core.destinations import Destination
from pagepilot.core.errors import TranscriptionError
from pagepilot.core.intent_classifier import IntentClassifier
from pagepilot.core.logger import get_logger
from pagepilot.core.orchestrator import SupportsTranscribe
from pagepilot.server.schemas import AnalyzeRequest, AnalyzeResponse, StatusResponse, TranscribeResponse


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": error}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def create_app(classifier: IntentClassifier, stt: Optional[SupportsTranscribe] = None) -> FastAPI:
    """Build the service around a classifier and an optional transcriber."""
    logger = get_logger()
    app = FastAPI(title="PagePilot", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.state.classifier = classifier
    app.state.stt = stt

    api = APIRouter(prefix="/api")

    @app.get("/health", response_model=StatusResponse)
    def health():
        return StatusResponse(status="OK", message="Server is running")

    @api.get("/", response_model=StatusResponse)
    def api_root():
        return StatusResponse(status="OK", message="API is running")

    @api.post("/intent/analyze", response_model=AnalyzeResponse)
    def analyze_intent(req: AnalyzeRequest):
        text = (req.text or "").strip()
        if not text:
            return _error(400, "Text is required")
        if not req.pages:
            return _error(400, "Valid pages array is required")

        destinations = [Destination.from_dict(p.model_dump()) for p in req.pages]
        logger.info(f"[API] analyze '{text}' (current={req.currentPageId or '-'})")
        try:
            action = app.state.classifier.classify(text, destinations, req.currentPageId)
        except Exception as e:
            logger.error(f"[API] analyze failed: {e}")
            return _error(500, "Failed to analyze intent", str(e))
        return action_to_response(action)

    @api.post("/speech/transcribe", response_model=TranscribeResponse)
    async def transcribe_audio(audio: Optional[UploadFile] = File(None)):
        if audio is None:
            return _error(400, "No audio file provided")

        data = await audio.read(Config.MAX_UPLOAD_BYTES + 1)
        if len(data) > Config.MAX_UPLOAD_BYTES:
            return _error(413, "Audio file too large", f"Limit is {Config.MAX_UPLOAD_BYTES} bytes")

        if app.state.stt is None:
            return _error(500, "Failed to transcribe audio", "No transcriber configured")

        try:
            transcript = await asyncio.to_thread(app.state.stt.transcribe_bytes, data, audio.filename or "")
        except TranscriptionError as e:
            logger.warning(f"[API] transcription failed: {e}")
            return _error(500, "Failed to transcribe audio", str(e))

        logger.info(f"[API] transcribed {len(data)} bytes: '{transcript}'")
        return TranscribeResponse(success=True, transcript=transcript)

    app.include_router(api)
    return app


def serve(app: FastAPI, host: Optional[str] = None, port: Optional[int] = None) -> None:
    import uvicorn

    host = host or Config.SERVICE_HOST
    port = port or Config.SERVICE_PORT
    get_logger().info(f"[API] listening on http://{host}:{port} (health: /health, api: /api)")
    uvicorn.run(app, host=host, port=port, log_level=Config.LOG_LEVEL.lower())
