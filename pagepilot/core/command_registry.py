"""
Command registry contracts.

A live destination publishes exactly one capability object while it is
mounted. The two shapes are distinct and not interchangeable: the list
registry accepts list mutations only, the form registry form mutations
only. `kind` lets the dispatcher check the shape before applying.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from pagepilot.core.actions import FieldEntry

REGISTRY_KIND_LIST = "list"
REGISTRY_KIND_FORM = "form"


class CommandRegistry(ABC):
    """Base for every capability bundle a mounted destination exposes."""

    kind: str = ""

    @abstractmethod
    def read_state(self) -> Dict[str, Any]:
        """Snapshot of the view's current state."""


class ListCommandRegistry(CommandRegistry):
    """Capabilities of a filterable / sortable / searchable list view."""

    kind = REGISTRY_KIND_LIST

    @abstractmethod
    def apply_list_mutation(self, op: str, field: Optional[str] = None, value: Optional[str] = None) -> bool:
        """Apply filter/sort/search/clear. Returns False if the op was not understood."""

    def categories(self) -> List[str]:
        return []


class FormCommandRegistry(CommandRegistry):
    """Capabilities of a multi-field form view."""

    kind = REGISTRY_KIND_FORM

    @abstractmethod
    def fill_field(self, name: str, value: str) -> bool:
        """Fill one field. Unknown field names are rejected with False."""

    @abstractmethod
    def fill_many(self, entries: Sequence[FieldEntry]) -> int:
        """Fill several fields; returns how many were actually applied."""

    @abstractmethod
    def submit(self) -> None:
        """Submit the form."""
