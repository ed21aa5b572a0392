"""
Configuration module for PagePilot.
Centralizes all settings with environment variable overrides.
"""
import os
from typing import List


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


class Config:
    """Central configuration for PagePilot"""

    # Oracle (language model) settings
    ORACLE_MODE: str = os.environ.get("PAGEPILOT_ORACLE_MODE", "ollama")  # "ollama", "openai" or "off"
    OLLAMA_BASE_URL: str = os.environ.get("PAGEPILOT_OLLAMA_URL", "http://127.0.0.1:11434")
    OLLAMA_MODEL: str = os.environ.get("PAGEPILOT_OLLAMA_MODEL", "llama3.1:latest")
    OLLAMA_API: str = os.environ.get("PAGEPILOT_OLLAMA_API", "chat")  # "chat" or "generate"
    OPENAI_BASE_URL: str = os.environ.get("PAGEPILOT_OPENAI_URL", "https://api.openai.com")
    OPENAI_MODEL: str = os.environ.get("PAGEPILOT_OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_API_KEY: str = os.environ.get("OPENAI_API_KEY", "")

    # Every oracle call site is bounded by this timeout; a timeout is an oracle failure
    ORACLE_TIMEOUT: float = float(os.environ.get("PAGEPILOT_ORACLE_TIMEOUT", "10"))

    # Per-stage sampling (low temperature: the prompts are closed classification questions)
    SUBMIT_TEMPERATURE: float = float(os.environ.get("PAGEPILOT_SUBMIT_TEMPERATURE", "0.1"))
    SUBMIT_MAX_TOKENS: int = int(os.environ.get("PAGEPILOT_SUBMIT_MAX_TOKENS", "10"))
    FORM_TEMPERATURE: float = float(os.environ.get("PAGEPILOT_FORM_TEMPERATURE", "0.1"))
    FORM_MAX_TOKENS: int = int(os.environ.get("PAGEPILOT_FORM_MAX_TOKENS", "250"))
    LIST_TEMPERATURE: float = float(os.environ.get("PAGEPILOT_LIST_TEMPERATURE", "0.3"))
    LIST_MAX_TOKENS: int = int(os.environ.get("PAGEPILOT_LIST_MAX_TOKENS", "100"))
    NAV_TEMPERATURE: float = float(os.environ.get("PAGEPILOT_NAV_TEMPERATURE", "0.3"))
    NAV_MAX_TOKENS: int = int(os.environ.get("PAGEPILOT_NAV_MAX_TOKENS", "50"))

    # Dispatch settings
    # Safety timeout for a pending action; the mount of the target registry is the real ready signal
    REGISTRY_GRACE_SEC: float = float(os.environ.get("PAGEPILOT_REGISTRY_GRACE_SEC", "0.5"))

    # STT settings
    WHISPER_MODEL: str = os.environ.get("PAGEPILOT_WHISPER_MODEL", "small")
    WHISPER_DEVICE: str = os.environ.get("PAGEPILOT_WHISPER_DEVICE", "cpu")
    WHISPER_COMPUTE_TYPE: str = os.environ.get("PAGEPILOT_WHISPER_COMPUTE_TYPE", "int8")
    SAMPLE_RATE: int = int(os.environ.get("PAGEPILOT_SAMPLE_RATE", "16000"))

    # Repetition filter (token repeats > this threshold => garbage)
    MAX_TOKEN_REPEATS: int = int(os.environ.get("PAGEPILOT_MAX_TOKEN_REPEATS", "6"))
    MIN_TRANSCRIPT_LENGTH: int = int(os.environ.get("PAGEPILOT_MIN_TRANSCRIPT_LENGTH", "2"))
    MAX_UPLOAD_BYTES: int = int(os.environ.get("PAGEPILOT_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    # Classification service
    SERVICE_HOST: str = os.environ.get("PAGEPILOT_HOST", "127.0.0.1")
    SERVICE_PORT: int = int(os.environ.get("PAGEPILOT_PORT", "3001"))
    SERVICE_URL: str = os.environ.get("PAGEPILOT_SERVICE_URL", "http://127.0.0.1:3001")
    SERVICE_TIMEOUT: float = float(os.environ.get("PAGEPILOT_SERVICE_TIMEOUT", "45"))
    CORS_ORIGINS: List[str] = os.environ.get(
        "PAGEPILOT_CORS_ORIGINS",
        "http://localhost:3000"
    ).split(",")

    # Logging
    LOG_LEVEL: str = os.environ.get("PAGEPILOT_LOG_LEVEL", "INFO")

    # Quiet Mode - hides per-stage cascade chatter
    QUIET_MODE: bool = _env_bool("PAGEPILOT_QUIET_MODE", "false")

    @classmethod
    def get_grace_ms(cls) -> int:
        """Get registry grace period in milliseconds"""
        return int(cls.REGISTRY_GRACE_SEC * 1000)
