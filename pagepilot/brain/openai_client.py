"""
HTTP client for OpenAI-compatible chat completion servers.

Works against api.openai.com as well as local servers exposing
/v1/chat/completions (llama.cpp, vLLM, LM Studio).
"""
import json
import socket
import time
import urllib.request
import urllib.error
from typing import Any, Dict, List, Optional

from pagepilot.brain.messages import Message
from pagepilot.core.logger import get_logger


class OpenAIChatClient:
    """Client for the OpenAI-compatible /v1/chat/completions endpoint."""

    def __init__(
        self,
        base_url: str = "https://api.openai.com",
        api_key: str = "",
        timeout: float = 10
    ):
        """
        Initialize the chat completion client.

        Args:
            base_url: Server base URL without the /v1 suffix
            api_key: Bearer token (may be empty for local servers)
            timeout: Timeout for each request in seconds
        """
        self.logger = get_logger()
        self.base_url = base_url.rstrip("/")
        if self.base_url.endswith("/v1"):
            self.base_url = self.base_url[:-3]
        self.api_key = api_key
        self.timeout = timeout

        self.opener = urllib.request.build_opener(
            urllib.request.HTTPHandler(debuglevel=0),
            urllib.request.HTTPSHandler(debuglevel=0)
        )

    def _headers(self) -> Dict[str, str]:
        headers = {
            'Content-Type': 'application/json',
            'Connection': 'keep-alive'
        }
        if self.api_key:
            headers['Authorization'] = f"Bearer {self.api_key}"
        return headers

    def ping(self) -> bool:
        """Check that /v1/models answers."""
        try:
            req = urllib.request.Request(
                f"{self.base_url}/v1/models",
                headers=self._headers(),
                method="GET"
            )
            with self.opener.open(req, timeout=5):
                return True
        except Exception as e:
            self.logger.debug(f"[ORACLE] chat endpoint ping failed: {e}")
            return False

    def chat(
        self,
        messages: List[Message],
        model: str,
        options: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Run one non-streaming chat completion and return the first choice's text.

        Raises:
            ConnectionError: If the server cannot be reached or answers with an HTTP error
            ValueError: If the response has no usable choice
        """
        options = options or {}
        start_time = time.time()
        payload = {
            "model": model,
            "messages": list(messages),
            "stream": False,
            "temperature": options.get("temperature", 0.3),
            "max_tokens": options.get("num_predict", options.get("max_tokens", 128)),
        }

        req = urllib.request.Request(
            f"{self.base_url}/v1/chat/completions",
            data=json.dumps(payload).encode('utf-8'),
            headers=self._headers(),
            method="POST"
        )

        self.logger.debug(f"[ORACLE] Chat completion with {model}")

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
            self.logger.error(f"[ORACLE] HTTP {e.code} after {elapsed_ms}ms: {error_body}")
            raise ConnectionError(f"Chat completion HTTP error: {e.code}") from e

        except urllib.error.URLError as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            self.logger.warning(f"[ORACLE] Connection error after {elapsed_ms}ms: {e}")
            raise ConnectionError(f"Cannot reach {self.base_url}: {e}") from e

        except (socket.timeout, TimeoutError) as e:
            raise ConnectionError(f"Chat completion timed out after {self.timeout}s") from e

        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON from chat endpoint: {e}") from e

        elapsed_ms = int((time.time() - start_time) * 1000)
        self.logger.debug(f"[ORACLE] Chat completion finished in {elapsed_ms}ms")

        choices = response_data.get("choices") if isinstance(response_data, dict) else None
        if not choices or not isinstance(choices[0], dict):
            raise ValueError("Invalid response format: no choices")
        message = choices[0].get("message") or {}
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ValueError("Invalid response format: empty message content")
        return content.strip()
