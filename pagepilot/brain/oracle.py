"""
Oracle facade: one fallible language-model call per cascade stage.

Every backend failure (transport, HTTP status, timeout, malformed body)
surfaces as OracleError so the classifier has a single thing to catch.
"""
from typing import Optional, Protocol

from pagepilot.brain.messages import build_messages, flatten_messages
from pagepilot.brain.ollama_client import OllamaClient
from pagepilot.brain.openai_client import OpenAIChatClient
from pagepilot.core.config import Config
from pagepilot.core.errors import OracleError
from pagepilot.core.logger import get_logger


class SupportsAsk(Protocol):
    def ask(self, system: str, prompt: str, temperature: float = 0.3, max_tokens: int = 100) -> str:
        ...


class Oracle:
    """Routes a closed system/user prompt to the configured backend."""

    def __init__(self, client, model: str, use_chat: bool = True, name: str = "oracle"):
        self.logger = get_logger()
        self.client = client
        self.model = model
        self.use_chat = use_chat
        self.name = name

    def ask(self, system: str, prompt: str, temperature: float = 0.3, max_tokens: int = 100) -> str:
        """
        Send one prompt and return the raw reply text.

        Raises:
            OracleError: on any backend failure or an empty reply
        """
        messages = build_messages(system, prompt)
        options = {"temperature": temperature, "num_predict": max_tokens}
        try:
            if self.use_chat:
                reply = self.client.chat(messages, model=self.model, options=options)
            else:
                reply = self.client.generate(flatten_messages(messages), model=self.model, options=options)
        except (ConnectionError, ValueError, OSError) as e:
            raise OracleError(f"{self.name}: {e}") from e

        if not isinstance(reply, str) or not reply.strip():
            raise OracleError(f"{self.name}: empty reply")
        self.logger.debug(f"[ORACLE] {self.name} reply: {reply[:120]!r}")
        return reply.strip()


class NullOracle:
    """Oracle used when the model is switched off; every call fails."""

    name = "off"

    def ask(self, system: str, prompt: str, temperature: float = 0.3, max_tokens: int = 100) -> str:
        raise OracleError("oracle disabled")


def build_oracle(mode: Optional[str] = None) -> SupportsAsk:
    """Build the oracle selected by Config.ORACLE_MODE (or the explicit mode)."""
    logger = get_logger()
    mode = (mode or Config.ORACLE_MODE or "off").lower()

    if mode == "ollama":
        client = OllamaClient(base_url=Config.OLLAMA_BASE_URL, timeout=Config.ORACLE_TIMEOUT)
        use_chat = Config.OLLAMA_API.lower() != "generate"
        logger.info(f"Oracle: Ollama {Config.OLLAMA_MODEL} at {Config.OLLAMA_BASE_URL} (api={'chat' if use_chat else 'generate'})")
        return Oracle(client, Config.OLLAMA_MODEL, use_chat=use_chat, name="ollama")

    if mode == "openai":
        if not Config.OPENAI_API_KEY:
            logger.warning("OPENAI_API_KEY is not set; only keyless OpenAI-compatible servers will answer")
        client = OpenAIChatClient(
            base_url=Config.OPENAI_BASE_URL,
            api_key=Config.OPENAI_API_KEY,
            timeout=Config.ORACLE_TIMEOUT,
        )
        logger.info(f"Oracle: OpenAI-compatible {Config.OPENAI_MODEL} at {Config.OPENAI_BASE_URL}")
        return Oracle(client, Config.OPENAI_MODEL, use_chat=True, name="openai")

    logger.info("Oracle: off (keyword matching only)")
    return NullOracle()
