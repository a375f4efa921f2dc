"""
Canonical workflow types (``budget_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for status state machines.  Every module with a status
field (milestones, risks, payment requests, building budgets) declares its
own ``Workflow`` in its ``workflows.py`` and checks moves through
``Workflow.require_transition``.  Permissive and strict workflows are kept
as separate objects even when they share states.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import permutations

from budget_kernel.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class Transition:
    """A permitted directed edge between two states."""
    from_state: str
    to_state: str
    action: str


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a record's status field.

    Contract: frozen; ``transitions`` reference only states in ``states``.
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
                f"{self.name}: initial state {self.initial_state!r} not in states"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"{self.name}: transition {t.from_state}->{t.to_state} "
                    f"references an unknown state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"{self.name}: terminal state {t.from_state!r} has an outgoing edge"
                )

    def targets(self, from_state: str) -> frozenset[str]:
        """States reachable in one step from ``from_state``."""
        return frozenset(
            t.to_state for t in self.transitions if t.from_state == from_state
        )

    def allows(self, from_state: str, to_state: str) -> bool:
        return to_state in self.targets(from_state)

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def require_transition(self, from_state: str, to_state: str) -> Transition:
        """Return the edge for ``from_state -> to_state`` or raise InvalidTransitionError."""
        for t in self.transitions:
            if t.from_state == from_state and t.to_state == to_state:
                return t
        raise InvalidTransitionError(self.name, from_state, to_state)


def fully_connected(
    name: str,
    description: str,
    states: tuple[str, ...],
    initial_state: str,
) -> Workflow:
    """Workflow in which every state can move to every other state."""
    return Workflow(
        name=name,
        description=description,
        initial_state=initial_state,
        states=states,
        transitions=tuple(
            Transition(a, b, action=f"set_{b}") for a, b in permutations(states, 2)
        ),
    )
