"""
Pure domain layer.

Value objects and rules with NO dependencies on the ORM, the database or
real time.  Everything here is immutable and deterministic.
"""

from budget_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from budget_kernel.domain.identity import Actor, Role
from budget_kernel.domain.workflow import Transition, Workflow, fully_connected

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "Actor",
    "Role",
    "Transition",
    "Workflow",
    "fully_connected",
]
