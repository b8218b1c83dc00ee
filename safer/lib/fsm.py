"""Delivery-item lifecycle state machine using transitions library.

Usage:
    from safer.lib.fsm import ItemFSM

    ItemFSM(item).fire("block")     # active -> blocked, item.status updated
"""

import logging

from transitions import Machine

from .errors import InvalidTransition
from .models import DeliveryItem

logger = logging.getLogger(__name__)


STATES = ["active", "blocked", "completed", "archived"]

TRANSITIONS = [
    {"trigger": "block", "source": "active", "dest": "blocked"},
    {"trigger": "unblock", "source": "blocked", "dest": "active"},
    {"trigger": "complete", "source": ["active", "blocked"], "dest": "completed"},
    {"trigger": "archive", "source": ["active", "blocked", "completed"], "dest": "archived"},
    {"trigger": "reopen", "source": "completed", "dest": "active"},
]


class ItemFSM:
    """State machine bound to one DeliveryItem.

    Writes the new state back to item.status after every transition.
    Persisting the item is the caller's job.
    """

    def __init__(self, item: DeliveryItem):
        self.item = item

        if item.status not in STATES:
            raise InvalidTransition(item.id, item.status, "load")

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=item.status,
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        self.item.status = to_state
        logger.info(f"[FSM] {self.item.id}: {from_state} -> {to_state} ({trigger})")

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger in self.machine.get_triggers(self.state)

    def fire(self, trigger: str) -> None:
        """Run a named transition.

        Raises:
            InvalidTransition: If the trigger is not allowed from the current state
        """
        if not self.can(trigger):
            raise InvalidTransition(self.item.id, self.state, trigger)
        self.trigger(trigger)


def transition(item: DeliveryItem, trigger: str) -> None:
    """Apply a lifecycle trigger to an item in place."""
    ItemFSM(item).fire(trigger)
