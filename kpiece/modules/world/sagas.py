"""
Saga and arc registry.

Pure data only. Which sagas and arcs a player has opened is stored on the
economy state; nothing here unlocks anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from kpiece.domain.models.economy import EconomyState


@dataclass(frozen=True)
class Arc:
    id: str
    name: str
    unlocked_by_default: bool = False


@dataclass(frozen=True)
class Saga:
    id: str
    name: str
    arcs: Tuple[Arc, ...]

    def get_arc(self, arc_id: str) -> Optional[Arc]:
        for arc in self.arcs:
            if arc.id == arc_id:
                return arc
        return None


SAGAS: Tuple[Saga, ...] = (
    Saga(
        id="east_blue",
        name="East Blue",
        arcs=(
            Arc("romance_dawn", "Romance Dawn", unlocked_by_default=True),
            Arc("orange_town", "Orange Town"),
            Arc("syrup_village", "Syrup Village"),
            Arc("baratie", "Baratie"),
            Arc("arlong_park", "Arlong Park"),
        ),
    ),
    Saga(
        id="grand_line",
        name="Grand Line",
        arcs=(
            Arc("whisky_peak", "Whisky Peak"),
            Arc("little_garden", "Little Garden"),
            Arc("drum_island", "Drum Island"),
            Arc("alabasta", "Alabasta"),
        ),
    ),
)

_SAGAS_BY_ID: Dict[str, Saga] = {saga.id: saga for saga in SAGAS}


def get_saga(saga_id: str) -> Optional[Saga]:
    """Look up a saga by id; None when unknown."""
    return _SAGAS_BY_ID.get(saga_id)


def find_arc(arc_id: str) -> Optional[Tuple[Saga, Arc]]:
    for saga in SAGAS:
        arc = saga.get_arc(arc_id)
        if arc is not None:
            return saga, arc
    return None


def is_saga_unlocked(state: EconomyState, saga_id: str) -> bool:
    return saga_id in state.unlocked_sagas


def is_arc_unlocked(state: EconomyState, arc_id: str) -> bool:
    return arc_id in state.unlocked_arcs
