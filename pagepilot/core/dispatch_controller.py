"""pagepilot.core.dispatch_controller

Applies classified actions to live destinations.

Navigate actions just trigger navigation. List and form actions have an
implied target destination; if it is already active and its registry is
mounted the action is applied immediately. Otherwise the action becomes
the single pending action, navigation is triggered once, and the action
is applied when the target both becomes active and mounts its registry.

Lifecycle of the pending slot:
- last-submitted-wins: a new pending action replaces an unconsumed one
- a new utterance (begin_turn) clears it
- entering a destination other than the pending target clears it
- the grace timer is a safety timeout; when it fires first the action is
  dropped and reported as a dispatch failure (no retry)

Registries are owned here as an explicit map fed by on_mount/on_unmount
from the rendering layer.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from pagepilot.core.actions import (
    Action,
    FieldEntry,
    FormMutation,
    FormOp,
    ListMutation,
    Navigate,
    NoMatch,
    describe_action,
)
from pagepilot.core.command_registry import (
    REGISTRY_KIND_FORM,
    REGISTRY_KIND_LIST,
    CommandRegistry,
)
from pagepilot.core.config import Config
from pagepilot.core.destinations import (
    DEFAULT_DESTINATIONS,
    FORM_DESTINATION_ID,
    LIST_DESTINATION_ID,
    Destination,
    find_destination,
)
from pagepilot.core.errors import (
    MSG_DISPATCH_FAILED,
    MSG_NO_FIELDS,
    MSG_NO_FIELDS_FILLED,
    MSG_NO_INTENT,
    invalid_email_message,
    invalid_list_value_message,
    unknown_field_message,
)
from pagepilot.core.field_normalizer import clean_field_value, split_known_fields, validate_email
from pagepilot.core.logger import get_logger
from pagepilot.core.state import DispatchState, PendingAction, RuntimeState


class OutcomeStatus(str, Enum):
    APPLIED = "applied"
    NAVIGATED = "navigated"
    PENDING = "pending"
    FAILED = "failed"
    NO_MATCH = "no_match"
    INVALID = "invalid"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DispatchOutcome:
    """Terminal (or pending) result of one dispatch."""
    status: OutcomeStatus
    message: str
    action: Optional[Action] = None
    destination_id: Optional[str] = None
    applied: int = 0
    requested: int = 0

    @property
    def ok(self) -> bool:
        return self.status in (OutcomeStatus.APPLIED, OutcomeStatus.NAVIGATED, OutcomeStatus.PENDING)


class SupportsTimer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], SupportsTimer]
OutcomeListener = Callable[[DispatchOutcome], None]


def _thread_timer(interval: float, fn: Callable[[], None]) -> SupportsTimer:
    timer = threading.Timer(interval, fn)
    timer.daemon = True
    return timer


def target_destination_for(action: Action) -> Optional[str]:
    """Destination an action has to be applied on (None for Navigate / NoMatch)."""
    if isinstance(action, ListMutation):
        return LIST_DESTINATION_ID
    if isinstance(action, FormMutation):
        return FORM_DESTINATION_ID
    return None


def _required_kind(action: Action) -> Optional[str]:
    if isinstance(action, ListMutation):
        return REGISTRY_KIND_LIST
    if isinstance(action, FormMutation):
        return REGISTRY_KIND_FORM
    return None


class DispatchController:
    """
    Owns the registry map, the pending action and the per-turn state.

    `navigate` is the rendering layer's routing hook; it receives a
    destination id. `listener` receives outcomes produced outside a
    dispatch() call (deferred apply, grace timeout).
    """

    def __init__(
        self,
        navigate: Callable[[str], None],
        destinations: Iterable[Destination] = DEFAULT_DESTINATIONS,
        grace_sec: Optional[float] = None,
        timer_factory: Optional[TimerFactory] = None,
        listener: Optional[OutcomeListener] = None,
    ):
        self.logger = get_logger()
        self.navigate = navigate
        self.destinations: List[Destination] = list(destinations)
        self.grace_sec = Config.REGISTRY_GRACE_SEC if grace_sec is None else grace_sec
        self.timer_factory = timer_factory or _thread_timer
        self.listener = listener

        self.state = RuntimeState()
        self.registries: Dict[str, CommandRegistry] = {}

        self._lock = threading.RLock()
        self._timer: Optional[SupportsTimer] = None
        self._next_token = 0
        self._dispatching = False
        self._deferred: Optional[DispatchOutcome] = None

    # ------------------------------------------------------------------
    # Rendering layer notifications
    # ------------------------------------------------------------------

    def on_mount(self, destination_id: str, registry: CommandRegistry) -> None:
        with self._lock:
            self.registries[destination_id] = registry
            self.logger.debug(f"[DISPATCH] registry mounted: {destination_id} ({registry.kind})")
            self._try_apply_pending()

    def on_unmount(self, destination_id: str) -> None:
        with self._lock:
            if self.registries.pop(destination_id, None) is not None:
                self.logger.debug(f"[DISPATCH] registry unmounted: {destination_id}")

    def on_destination_changed(self, destination_id: str) -> None:
        with self._lock:
            self.state.active_destination_id = destination_id
            pending = self.state.pending
            if pending is not None and pending.destination_id != destination_id:
                self.logger.info(
                    f"[PENDING] entered '{destination_id}', dropping action for '{pending.destination_id}'"
                )
                self._go_idle()
                return
            self._try_apply_pending()

    def get_registry(self, destination_id: str) -> Optional[CommandRegistry]:
        return self.registries.get(destination_id)

    # ------------------------------------------------------------------
    # Turn lifecycle
    # ------------------------------------------------------------------

    def begin_turn(self) -> None:
        """A new utterance arrived: discard any pending action and start classifying."""
        with self._lock:
            if self.state.pending is not None:
                self.logger.info(
                    f"[PENDING] new utterance replaces pending "
                    f"{type(self.state.pending.action).__name__} for '{self.state.pending.destination_id}'"
                )
            self._clear_pending()
            self.state.transition_to(DispatchState.CLASSIFYING)

    def end_turn(self) -> None:
        """Return to idle when a turn ends without dispatching (e.g. classification was rejected)."""
        with self._lock:
            if not self.state.is_in_state(DispatchState.AWAITING_DESTINATION):
                self._go_idle()

    def clear_pending(self) -> None:
        with self._lock:
            if self.state.is_in_state(DispatchState.AWAITING_DESTINATION):
                self._go_idle()
            else:
                self._clear_pending()

    @property
    def pending(self) -> Optional[PendingAction]:
        return self.state.pending

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: Action) -> DispatchOutcome:
        with self._lock:
            self._dispatching = True
            self._deferred = None
            try:
                return self._dispatch(action)
            finally:
                self._dispatching = False

    def _dispatch(self, action: Action) -> DispatchOutcome:
        if isinstance(action, NoMatch):
            self.logger.info(f"[DISPATCH] no intent for '{action.utterance}'")
            self._go_idle()
            return DispatchOutcome(OutcomeStatus.NO_MATCH, MSG_NO_INTENT, action)

        if isinstance(action, Navigate):
            dest_id = action.destination.id
            self.logger.info(f"[DISPATCH] navigate -> {dest_id}")
            self._go_idle()
            self.navigate(dest_id)
            return DispatchOutcome(OutcomeStatus.NAVIGATED, describe_action(action), action, dest_id)

        target = target_destination_for(action)
        if target is None or find_destination(target, self.destinations) is None:
            self.logger.error(f"[DISPATCH] no destination hosts {type(action).__name__}")
            self._go_idle()
            return DispatchOutcome(OutcomeStatus.FAILED, MSG_DISPATCH_FAILED, action, target)

        registry = self.registries.get(target)
        if self.state.active_destination_id == target and registry is not None:
            self.state.transition_to(DispatchState.APPLYING)
            outcome = self._apply(action, target, registry)
            self._go_idle()
            return outcome

        self._set_pending(action, target)
        self.navigate(target)

        # The router may mount the target synchronously inside navigate()
        if self._deferred is not None:
            return self._deferred
        if self.state.pending is None:
            return DispatchOutcome(OutcomeStatus.FAILED, MSG_DISPATCH_FAILED, action, target)
        return DispatchOutcome(
            OutcomeStatus.PENDING,
            f"Opening {target} to apply: {describe_action(action)}",
            action,
            target,
        )

    # ------------------------------------------------------------------
    # Pending action
    # ------------------------------------------------------------------

    def _set_pending(self, action: Action, target: str) -> None:
        self._clear_pending()
        self._next_token += 1
        token = self._next_token
        self.state.pending = PendingAction(action=action, destination_id=target, token=token)
        self.state.transition_to(DispatchState.AWAITING_DESTINATION)
        self.logger.info(f"[PENDING] holding {describe_action(action)!r} until '{target}' is live")

        self._timer = self.timer_factory(self.grace_sec, lambda: self._on_grace_timeout(token))
        self._timer.start()

    def _clear_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.state.pending = None

    def _go_idle(self) -> None:
        """Every return to IDLE drops the pending action and its timer."""
        self._clear_pending()
        self.state.transition_to(DispatchState.IDLE)

    def _try_apply_pending(self) -> None:
        pending = self.state.pending
        if pending is None:
            return
        if self.state.active_destination_id != pending.destination_id:
            return
        registry = self.registries.get(pending.destination_id)
        if registry is None:
            return

        self._clear_pending()
        self.state.transition_to(DispatchState.APPLYING)
        outcome = self._apply(pending.action, pending.destination_id, registry)
        self._go_idle()
        self._report(outcome)

    def _on_grace_timeout(self, token: int) -> None:
        with self._lock:
            pending = self.state.pending
            if pending is None or pending.token != token:
                return
            self.logger.warning(
                f"[PENDING] '{pending.destination_id}' not ready after "
                f"{self.state.get_pending_age():.2f}s, dropping action"
            )
            self._go_idle()
            self._report(DispatchOutcome(
                OutcomeStatus.FAILED, MSG_DISPATCH_FAILED, pending.action, pending.destination_id
            ))

    def _report(self, outcome: DispatchOutcome) -> None:
        if self._dispatching:
            self._deferred = outcome
            return
        if self.listener is not None:
            try:
                self.listener(outcome)
            except Exception as e:
                self.logger.error(f"[DISPATCH] outcome listener failed: {e}")

    # ------------------------------------------------------------------
    # Applying against a registry
    # ------------------------------------------------------------------

    def _apply(self, action: Action, destination_id: str, registry: CommandRegistry) -> DispatchOutcome:
        required = _required_kind(action)
        if registry.kind != required:
            self.logger.error(
                f"[DISPATCH] '{destination_id}' exposes a {registry.kind or 'unknown'} registry, "
                f"{type(action).__name__} needs {required}"
            )
            return DispatchOutcome(OutcomeStatus.FAILED, MSG_DISPATCH_FAILED, action, destination_id)

        try:
            if isinstance(action, ListMutation):
                return self._apply_list(action, destination_id, registry)
            return self._apply_form(action, destination_id, registry)
        except Exception as e:
            self.logger.error(f"[DISPATCH] registry '{destination_id}' raised: {e}")
            return DispatchOutcome(OutcomeStatus.FAILED, MSG_DISPATCH_FAILED, action, destination_id)

    def _apply_list(self, action: ListMutation, destination_id: str, registry) -> DispatchOutcome:
        ok = registry.apply_list_mutation(action.op.value, action.field, action.value)
        if not ok:
            message = invalid_list_value_message(action.field or action.op.value, action.value or "")
            self.logger.info(f"[DISPATCH] list view rejected {action.op.value} '{action.value}'")
            return DispatchOutcome(OutcomeStatus.INVALID, message, action, destination_id, 0, 1)
        self.logger.info(f"[DISPATCH] {describe_action(action)}")
        return DispatchOutcome(OutcomeStatus.APPLIED, describe_action(action), action, destination_id, 1, 1)

    def _check_entry(self, entry: FieldEntry) -> Optional[str]:
        """Return a validation message for a bad entry, or None if it may be applied."""
        if entry.field == "email" and not validate_email(entry.value):
            return invalid_email_message(entry.value)
        return None

    def _apply_form(self, action: FormMutation, destination_id: str, registry) -> DispatchOutcome:
        if action.op == FormOp.SUBMIT:
            registry.submit()
            self.logger.info("[DISPATCH] form submitted")
            return DispatchOutcome(OutcomeStatus.APPLIED, describe_action(action), action, destination_id, 1, 1)

        entries = [FieldEntry(e.field.strip().lower(), clean_field_value(e.value)) for e in action.entries]
        requested = len(entries)
        if not entries:
            return DispatchOutcome(OutcomeStatus.INVALID, MSG_NO_FIELDS, action, destination_id)

        _, unknown = split_known_fields(e.field for e in entries)
        problems: List[str] = [unknown_field_message(name) for name in unknown]
        valid: List[FieldEntry] = []
        for entry in entries:
            if entry.field in unknown:
                continue
            problem = self._check_entry(entry)
            if problem:
                problems.append(problem)
            else:
                valid.append(entry)

        if action.op == FormOp.FILL_ONE:
            if not valid:
                return DispatchOutcome(OutcomeStatus.INVALID, problems[0], action, destination_id, 0, requested)
            entry = valid[0]
            if not registry.fill_field(entry.field, entry.value):
                return DispatchOutcome(
                    OutcomeStatus.INVALID, unknown_field_message(entry.field), action, destination_id, 0, 1
                )
            self.logger.info(f"[DISPATCH] filled {entry.field}")
            return DispatchOutcome(
                OutcomeStatus.APPLIED, describe_action(action), action, destination_id, 1, 1
            )

        applied = registry.fill_many(valid) if valid else 0
        self.logger.info(f"[DISPATCH] filled {applied}/{requested} fields")
        if applied == 0:
            message = problems[0] if problems else MSG_NO_FIELDS_FILLED
            return DispatchOutcome(OutcomeStatus.INVALID, message, action, destination_id, 0, requested)

        names = ", ".join(e.field for e in valid)
        message = f"Filled {applied} of {requested} fields ({names})" if applied < requested \
            else describe_action(action)
        if problems:
            message = f"{message}. {' '.join(problems)}"
        return DispatchOutcome(OutcomeStatus.APPLIED, message, action, destination_id, applied, requested)
