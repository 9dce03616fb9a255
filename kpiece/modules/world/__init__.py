"""Static world data: sagas and arcs."""

from .sagas import SAGAS, Arc, Saga, find_arc, get_saga, is_arc_unlocked, is_saga_unlocked

__all__ = [
    "SAGAS",
    "Arc",
    "Saga",
    "get_saga",
    "find_arc",
    "is_saga_unlocked",
    "is_arc_unlocked",
]
