"""
HTTP client for Ollama API with connection reuse.
Handles all communication with a local Ollama instance.
"""
import json
import socket
import time
import urllib.request
import urllib.error
from typing import Dict, Any, List, Optional

from pagepilot.brain.messages import Message
from pagepilot.core.logger import get_logger


class OllamaClient:
    """Client for the Ollama /api/generate and /api/chat endpoints."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:11434",
        timeout: float = 10
    ):
        """
        Initialize Ollama HTTP client.

        Args:
            base_url: Ollama API base URL (e.g., http://127.0.0.1:11434)
            timeout: Timeout for each request in seconds
        """
        self.logger = get_logger()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        # Reusable opener so keep-alive connections are shared across calls
        self.opener = urllib.request.build_opener(
            urllib.request.HTTPHandler(debuglevel=0),
            urllib.request.HTTPSHandler(debuglevel=0)
        )

    def ping(self) -> bool:
        """
        Check if Ollama server is running and accessible.

        Returns:
            True if Ollama is reachable, False otherwise
        """
        try:
            start_time = time.time()
            req = urllib.request.Request(f"{self.base_url}/api/tags", method="GET")
            with self.opener.open(req, timeout=5) as response:
                data = json.loads(response.read().decode('utf-8'))
                models = [m.get("name", "") for m in data.get("models", [])]
                elapsed_ms = int((time.time() - start_time) * 1000)
                self.logger.debug(f"[ORACLE] Ollama ping successful ({elapsed_ms}ms). Available models: {models}")
                return True
        except Exception as e:
            self.logger.debug(f"[ORACLE] Ollama ping failed: {e}")
            return False

    def _post(self, path: str, payload: Dict[str, Any], model: str) -> Dict[str, Any]:
        """POST a JSON payload and return the decoded JSON body."""
        start_time = time.time()
        req = urllib.request.Request(
            f"{self.base_url}{path}",
            data=json.dumps(payload).encode('utf-8'),
            headers={
                'Content-Type': 'application/json',
                'Connection': 'keep-alive'
            },
            method="POST"
        )

        try:
            with self.opener.open(req, timeout=self.timeout) as response:
                response_data = json.loads(response.read().decode('utf-8'))

        except urllib.error.HTTPError as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            error_body = ""
            try:
                error_body = e.read().decode('utf-8')
            except Exception:
                pass

            self.logger.error(f"[ORACLE] HTTP {e.code} from Ollama after {elapsed_ms}ms: {error_body}")

            if e.code == 404 or "model" in error_body.lower():
                raise ValueError(f"Model '{model}' not found. Try: ollama pull {model}") from e

            raise ConnectionError(f"Ollama HTTP error: {e.code}") from e

        except urllib.error.URLError as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            self.logger.warning(f"[ORACLE] Connection error after {elapsed_ms}ms: {e}")

            if "Connection refused" in str(e):
                raise ConnectionError(f"Cannot reach Ollama at {self.base_url}. Try: ollama serve") from e
            raise ConnectionError(f"Network error: {e}") from e

        except (socket.timeout, TimeoutError) as e:
            self.logger.warning(f"[ORACLE] Ollama request timed out after {self.timeout}s")
            raise ConnectionError(f"Ollama timed out after {self.timeout}s") from e

        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON from Ollama: {e}") from e

        elapsed_ms = int((time.time() - start_time) * 1000)
        prompt_tokens = response_data.get("prompt_eval_count", 0)
        eval_tokens = response_data.get("eval_count", 0)
        self.logger.debug(
            f"[ORACLE] {path} completed in {elapsed_ms}ms "
            f"(prompt_tokens={prompt_tokens}, eval_tokens={eval_tokens})"
        )
        return response_data

    def generate(
        self,
        prompt: str,
        model: str,
        options: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Generate text from a single prompt string (non-streaming).

        Raises:
            ConnectionError: If cannot reach Ollama
            ValueError: If response is invalid or model not found
        """
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": options or {}
        }
        self.logger.debug(f"[ORACLE] Generating with {model}")
        data = self._post("/api/generate", payload, model)
        return str(data.get("response", "")).strip()

    def chat(
        self,
        messages: List[Message],
        model: str,
        options: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Chat completion over a system/user message list (non-streaming).

        Raises:
            ConnectionError: If cannot reach Ollama
            ValueError: If response is invalid or model not found
        """
        payload = {
            "model": model,
            "messages": list(messages),
            "stream": False,
            "options": options or {}
        }
        self.logger.debug(f"[ORACLE] Chat with {model} ({len(messages)} messages)")
        data = self._post("/api/chat", payload, model)
        message = data.get("message")
        if not isinstance(message, dict):
            raise ValueError("Ollama chat response has no message")
        return str(message.get("content", "")).strip()
