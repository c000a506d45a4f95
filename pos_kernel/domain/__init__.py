"""
Pure domain layer.

Value objects and abstractions with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (SystemClock is the single sanctioned time boundary)
"""

from pos_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
)
from pos_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Guard",
    "Transition",
    "Workflow",
]
