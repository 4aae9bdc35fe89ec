"""Project and Carbon Credit State Machine Guards.

Uses python-statemachine to enforce legal state transitions at the domain level.
Whatever the API layer does, an illegal transition (e.g., REJECTED -> VERIFIED)
raises TransitionNotAllowed before the ORM status column is touched.

A machine is instantiated per-entity at its current status, the event is
fired, and the resulting status is written back by the service layer.

Project transition table:
    PENDING    -> VERIFIED        (verify)
    PENDING    -> REJECTED        (reject)
    VERIFIED   -> CREDITS_ISSUED  (issue_credits)

Carbon credit transition table:
    ACTIVE       -> TRANSFERRED   (transfer)
    ACTIVE       -> RETIRED       (retire)
    TRANSFERRED  -> RETIRED       (retire)

TRANSFERRED has no outgoing transfer edge: a credit can change hands once.
"""

from __future__ import annotations

from statemachine import State, StateMachine


class _StatusMachine:
    """Shared construction from a persisted status string."""

    def __init__(self, current_status: str) -> None:
        """Initialize the state machine at a given status.

        Args:
            current_status: The persisted status value (e.g., "PENDING").
                           Must match one of the State value strings exactly.
        """
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        """Return the current state value as a string."""
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return the ids of the events that can fire from the current state."""
        return [event.id for event in self.allowed_events]


class ProjectStateMachine(_StatusMachine, StateMachine):
    """Guards the project verification lifecycle.

    Usage:
        sm = ProjectStateMachine("PENDING")
        sm.verify()   # transitions to VERIFIED
        sm.status     # "VERIFIED"
    """

    # --- States ---
    PENDING = State("PENDING", initial=True)
    VERIFIED = State("VERIFIED")
    REJECTED = State("REJECTED", final=True)
    CREDITS_ISSUED = State("CREDITS_ISSUED", final=True)

    # --- Events / Transitions ---
    verify = PENDING.to(VERIFIED)
    reject = PENDING.to(REJECTED)
    issue_credits = VERIFIED.to(CREDITS_ISSUED)


class CreditStateMachine(_StatusMachine, StateMachine):
    """Guards the carbon credit ownership lifecycle."""

    # --- States ---
    ACTIVE = State("ACTIVE", initial=True)
    TRANSFERRED = State("TRANSFERRED")
    RETIRED = State("RETIRED", final=True)

    # --- Events / Transitions ---
    transfer = ACTIVE.to(TRANSFERRED)
    retire = ACTIVE.to(RETIRED) | TRANSFERRED.to(RETIRED)


def validate_transition(
    machine_cls: type[_StatusMachine],
    current_status: str,
    event_name: str,
) -> str:
    """Validate a state transition and return the new status.

    Creates a temporary state machine, fires the named event, and returns
    the resulting status string.

    Args:
        machine_cls: ProjectStateMachine or CreditStateMachine.
        current_status: Current persisted status value.
        event_name: The event to fire (e.g., "verify").

    Returns:
        The new status string after the transition.

    Raises:
        TransitionNotAllowed: If the transition is illegal.
        ValueError: If the status or event name is invalid.
    """
    sm = machine_cls(current_status)

    event_method = getattr(sm, event_name, None)
    if event_method is None or not callable(event_method):
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_status}: {sm.get_allowed_events()}"
        )

    event_method()
    return sm.status
