"""
Canonical workflow types (``payroll_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for status state machines: pay periods, bonuses and
placement progress each declare a ``Workflow`` once, and every status
change is resolved through ``Workflow.apply``.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* A status can only change along a declared transition; anything else
  raises ``InvalidTransitionError``.
"""

from __future__ import annotations

from dataclasses import dataclass

from payroll_kernel.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a record lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    ``terminal_states`` are states with no outgoing transitions.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow '{self.name}': initial state '{self.initial_state}' "
                f"is not one of {self.states}"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow '{self.name}': transition {t.action} "
                    f"references unknown state ({t.from_state} -> {t.to_state})"
                )

    def actions_from(self, state: str) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == state)

    def can_apply(self, state: str, action: str) -> bool:
        return action in self.actions_from(state)

    def apply(self, state: str, action: str) -> str:
        """Return the target state for ``action`` from ``state``.

        Raises:
            InvalidTransitionError: if no such transition is declared.
        """
        for t in self.transitions:
            if t.from_state == state and t.action == action:
                return t.to_state
        raise InvalidTransitionError(self.name, state, action)

    def rank(self, state: str) -> int:
        """Position of ``state`` in declaration order (used for monotonicity checks)."""
        return self.states.index(state)
