"""
Typed actions produced by the intent classifier.

Exactly one action is produced per utterance. Actions are immutable
value objects; they are consumed at most once by the dispatch controller.

Also holds the wire codec for the classification service response,
which always carries every payload key (null when unused) so the shape
is stable for the client.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pagepilot.core.destinations import Destination, find_destination


class ListOp(str, Enum):
    """Mutations supported by the list view"""
    FILTER = "filter"
    SORT = "sort"
    SEARCH = "search"
    CLEAR = "clear"


class FormOp(str, Enum):
    """Mutations supported by the form view (values are the wire names)"""
    FILL_ONE = "fill-field"
    FILL_MANY = "fill-multiple"
    SUBMIT = "submit-form"


class IntentType(str, Enum):
    NAVIGATION = "navigation"
    LIST_MUTATION = "list-mutation"
    FORM_MUTATION = "form-mutation"
    NONE = "none"


@dataclass(frozen=True)
class FieldEntry:
    field: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "value": self.value}


@dataclass(frozen=True)
class Navigate:
    destination: Destination

    @property
    def intent_type(self) -> IntentType:
        return IntentType.NAVIGATION


@dataclass(frozen=True)
class ListMutation:
    op: ListOp
    field: Optional[str] = None
    value: Optional[str] = None

    @property
    def intent_type(self) -> IntentType:
        return IntentType.LIST_MUTATION

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.op.value, "type": self.field, "value": self.value}


@dataclass(frozen=True)
class FormMutation:
    op: FormOp
    entries: Tuple[FieldEntry, ...] = field(default_factory=tuple)

    @property
    def intent_type(self) -> IntentType:
        return IntentType.FORM_MUTATION

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"action": self.op.value, "field": None, "value": None, "fields": None}
        if self.op == FormOp.FILL_ONE and self.entries:
            data["field"] = self.entries[0].field
            data["value"] = self.entries[0].value
        elif self.op == FormOp.FILL_MANY:
            data["fields"] = [e.to_dict() for e in self.entries]
        return data


@dataclass(frozen=True)
class NoMatch:
    utterance: str = ""

    @property
    def intent_type(self) -> IntentType:
        return IntentType.NONE


Action = Union[Navigate, ListMutation, FormMutation, NoMatch]


def fill_action(entries: Iterable[FieldEntry]) -> Optional[FormMutation]:
    """Build fill_one / fill_many from extracted entries, or None if there are none."""
    items = tuple(entries)
    if not items:
        return None
    if len(items) == 1:
        return FormMutation(FormOp.FILL_ONE, items)
    return FormMutation(FormOp.FILL_MANY, items)


def submit_action() -> FormMutation:
    return FormMutation(FormOp.SUBMIT)


def describe_action(action: Action) -> str:
    """Short human-readable summary, used for status messages and logs."""
    if isinstance(action, Navigate):
        return f"Navigated to {action.destination.display_name}"
    if isinstance(action, ListMutation):
        if action.op == ListOp.FILTER:
            return f"Filtering by {action.field}: {action.value}"
        if action.op == ListOp.SORT:
            return f"Sorting by {action.value}"
        if action.op == ListOp.SEARCH:
            return f"Searching for: {action.value}"
        return "Cleared all filters"
    if isinstance(action, FormMutation):
        if action.op == FormOp.SUBMIT:
            return "Submitted the contact form"
        if action.op == FormOp.FILL_ONE and action.entries:
            entry = action.entries[0]
            return f"Filled {entry.field} with \"{entry.value}\""
        if action.entries:
            names = ", ".join(e.field for e in action.entries)
            return f"Filled multiple fields ({names})"
        return "Filled form fields"
    return "No matching action"


# ============================================================================
# WIRE CODEC
# ============================================================================

def action_to_response(action: Action) -> Dict[str, Any]:
    """Build the classification service response for an action."""
    response: Dict[str, Any] = {
        "success": True,
        "hasMatch": not isinstance(action, NoMatch),
        "intentType": action.intent_type.value,
        "matchedPage": None,
        "listAction": None,
        "formAction": None,
    }
    if isinstance(action, Navigate):
        response["matchedPage"] = action.destination.to_dict()
    elif isinstance(action, ListMutation):
        response["listAction"] = action.to_dict()
    elif isinstance(action, FormMutation):
        response["formAction"] = action.to_dict()
    return response


def _entries_from_wire(form: Dict[str, Any]) -> List[FieldEntry]:
    entries = []
    if form.get("fields"):
        for item in form["fields"]:
            if isinstance(item, dict) and item.get("field") and item.get("value") is not None:
                entries.append(FieldEntry(str(item["field"]), str(item["value"])))
    elif form.get("field") and form.get("value") is not None:
        entries.append(FieldEntry(str(form["field"]), str(form["value"])))
    return entries


def action_from_response(
    payload: Dict[str, Any],
    destinations: Iterable[Destination] = (),
    utterance: str = "",
) -> Action:
    """
    Rebuild an action from a classification service response.

    Unknown or inconsistent payloads decode to NoMatch.
    """
    if not isinstance(payload, dict) or not payload.get("success") or not payload.get("hasMatch"):
        return NoMatch(utterance)

    intent = payload.get("intentType")

    if intent == IntentType.NAVIGATION.value and isinstance(payload.get("matchedPage"), dict):
        page = payload["matchedPage"]
        known = find_destination(page.get("id"), destinations)
        return Navigate(known or Destination.from_dict(page))

    if intent == IntentType.LIST_MUTATION.value and isinstance(payload.get("listAction"), dict):
        data = payload["listAction"]
        try:
            op = ListOp(data.get("action"))
        except ValueError:
            return NoMatch(utterance)
        return ListMutation(op, data.get("type"), data.get("value"))

    if intent == IntentType.FORM_MUTATION.value and isinstance(payload.get("formAction"), dict):
        data = payload["formAction"]
        try:
            op = FormOp(data.get("action"))
        except ValueError:
            return NoMatch(utterance)
        if op == FormOp.SUBMIT:
            return submit_action()
        action = fill_action(_entries_from_wire(data))
        return action if action is not None else NoMatch(utterance)

    return NoMatch(utterance)
