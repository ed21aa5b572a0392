"""
HTTP client for the classification service.

Posts an utterance plus the destination list to /api/intent/analyze and
decodes the stable response shape back into an Action.
"""
import json
import socket
import time
import urllib.error
import urllib.request
from typing import Any, Dict, Iterable, List, Optional

from pagepilot.core.actions import Action, action_from_response
from pagepilot.core.config import Config
from pagepilot.core.destinations import Destination
from pagepilot.core.errors import ServiceError
from pagepilot.core.logger import get_logger


class ClassificationClient:
    """Remote stand-in for IntentClassifier.classify()."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.logger = get_logger()
        self.base_url = (base_url or Config.SERVICE_URL).rstrip("/")
        self.timeout = Config.SERVICE_TIMEOUT if timeout is None else timeout
        self.opener = urllib.request.build_opener()

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        start_time = time.time()
        req = urllib.request.Request(
            f"{self.base_url}{path}",
            data=json.dumps(payload).encode('utf-8'),
            headers={'Content-Type': 'application/json'},
            method="POST"
        )
        try:
            with self.opener.open(req, timeout=self.timeout) as response:
                data = json.loads(response.read().decode('utf-8'))
        except urllib.error.HTTPError as e:
            detail = ""
            try:
                detail = e.read().decode('utf-8')
            except Exception:
                pass
            self.logger.error(f"[API] HTTP {e.code} from {path}: {detail}")
            raise ServiceError(f"Classification service returned HTTP {e.code}") from e
        except urllib.error.URLError as e:
            raise ServiceError(f"Cannot reach classification service at {self.base_url}: {e.reason}") from e
        except (socket.timeout, TimeoutError) as e:
            raise ServiceError(f"Classification service timed out after {self.timeout}s") from e
        except json.JSONDecodeError as e:
            raise ServiceError(f"Invalid JSON from classification service: {e}") from e

        if not isinstance(data, dict):
            raise ServiceError("Classification service returned a non-object body")

        elapsed_ms = int((time.time() - start_time) * 1000)
        self.logger.debug(f"[API] {path} answered in {elapsed_ms}ms")
        return data

    def analyze(
        self,
        utterance: str,
        destinations: Iterable[Destination],
        current_destination_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Raw service response for one utterance."""
        pages: List[Dict[str, Any]] = [d.to_dict() for d in destinations]
        payload: Dict[str, Any] = {"text": utterance, "pages": pages}
        if current_destination_id:
            payload["currentPageId"] = current_destination_id
        return self._post("/api/intent/analyze", payload)

    def classify(
        self,
        utterance: str,
        destinations: Iterable[Destination],
        current_destination_id: Optional[str] = None,
    ) -> Action:
        """
        Classify remotely.

        Raises:
            ServiceError: if the service cannot be reached or answers badly
        """
        destinations = list(destinations)
        data = self.analyze(utterance, destinations, current_destination_id)
        return action_from_response(data, destinations, utterance)
