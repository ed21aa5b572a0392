"""
Contact form view.

In-memory model of the contact screen. Registers a FormCommandRegistry
while mounted. Field values are kept as given; validation of their
content (email shape) happens in the dispatcher before they get here.
"""
import time
from typing import Any, Dict, List, Optional, Sequence

from pagepilot.core.actions import FieldEntry
from pagepilot.core.command_registry import FormCommandRegistry
from pagepilot.core.field_normalizer import CANONICAL_SUBJECTS, FORM_FIELDS, normalize_subject
from pagepilot.core.logger import get_logger

STATUS_IDLE = "idle"
STATUS_SUCCESS = "success"


class ContactFormView(FormCommandRegistry):
    """Contact screen state plus its form command surface."""

    def __init__(self, default_subject: str = "general"):
        self.logger = get_logger()
        self.default_subject = default_subject
        self.values: Dict[str, str] = {}
        self.status = STATUS_IDLE
        self.submissions: List[Dict[str, Any]] = []
        self._reset()

    def _reset(self) -> None:
        self.values = {name: "" for name in FORM_FIELDS}
        self.values["subject"] = self.default_subject

    def select_subject(self, text: str) -> bool:
        subject = normalize_subject(text)
        if subject is None or subject not in CANONICAL_SUBJECTS:
            return False
        self.values["subject"] = subject
        return True

    def fill_field(self, name: str, value: str) -> bool:
        key = (name or "").strip().lower()
        if key not in self.values:
            self.logger.warning(f"[VIEW] contact: unknown field '{name}'")
            return False

        self.status = STATUS_IDLE
        if key == "subject":
            return self.select_subject(value)

        self.values[key] = (value or "").strip()
        return True

    def fill_many(self, entries: Sequence[FieldEntry]) -> int:
        applied = 0
        for entry in entries:
            if self.fill_field(entry.field, entry.value):
                applied += 1
        return applied

    def submit(self) -> None:
        self.submissions.append({"fields": dict(self.values), "submitted_at": time.time()})
        self.logger.info(f"[VIEW] contact: submitted ({len(self.submissions)} total)")
        self.status = STATUS_SUCCESS
        self._reset()

    def last_submission(self) -> Optional[Dict[str, Any]]:
        return self.submissions[-1] if self.submissions else None

    def read_state(self) -> Dict[str, Any]:
        state: Dict[str, Any] = dict(self.values)
        state["status"] = self.status
        state["submissions"] = len(self.submissions)
        return state
