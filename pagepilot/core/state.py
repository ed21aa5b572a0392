"""
State management for the dispatch controller.
Defines the per-turn state machine and the pending action slot.
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import time

from pagepilot.core.actions import Action


class DispatchState(Enum):
    """Per-turn dispatch states"""
    IDLE = "IDLE"
    CLASSIFYING = "CLASSIFYING"
    APPLYING = "APPLYING"
    AWAITING_DESTINATION = "AWAITING_DESTINATION"


@dataclass(frozen=True)
class PendingAction:
    """An action held until its target destination's registry is live"""
    action: Action
    destination_id: str
    token: int
    created_at: float = field(default_factory=time.time)


@dataclass
class RuntimeState:
    """Runtime state tracking"""
    current_state: DispatchState = DispatchState.IDLE
    last_state_change: float = field(default_factory=time.time)
    active_destination_id: Optional[str] = None
    pending: Optional[PendingAction] = None
    turns: int = 0

    def transition_to(self, new_state: DispatchState) -> None:
        """Transition to a new state"""
        self.current_state = new_state
        self.last_state_change = time.time()

        if new_state == DispatchState.CLASSIFYING:
            self.turns += 1

    def is_in_state(self, state: DispatchState) -> bool:
        """Check if currently in given state"""
        return self.current_state == state

    def get_pending_age(self) -> float:
        """Seconds the pending action has been waiting (0 if none)"""
        if self.pending is not None:
            return time.time() - self.pending.created_at
        return 0.0
