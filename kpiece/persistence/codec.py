"""
Save document codec.

Purpose
-------
Convert an `EconomyState` to and from the JSON-compatible save document.
Field names follow the browser game's save (`berries`, `bps`,
`selectedCrew`, `treasureChestLevel`, ...) so existing saves load unchanged.

Design Notes
------------
- Pure functions; no I/O.
- No schema version and no migration: anything that does not decode into a
  valid state raises `CorruptSaveError`.
- `bps` is written for compatibility but never trusted on load. The income
  rate is recomputed from the characters and a mismatch is logged.
- Numeric stats written as fractions by older saves are floored to ints.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional

from kpiece.core.exceptions import CorruptSaveError
from kpiece.core.logging.logger import get_logger
from kpiece.domain.models.base import DomainValidationError
from kpiece.domain.models.character import (
    Affinity,
    Character,
    CharacterStats,
    Skill,
    SkillCategory,
)
from kpiece.domain.models.economy import Achievement, EconomyRules, EconomyState
from kpiece.modules.rarity.table import RarityTier

logger = get_logger(__name__)

INCOME_TOLERANCE = 1e-9


# ============================================================================
# ENCODE
# ============================================================================


def _encode_skill(skill: Skill) -> Dict[str, Any]:
    return {
        "name": skill.name,
        "type": skill.category.value,
        "damage": skill.power,
        "description": skill.description,
    }


def encode_character(character: Character) -> Dict[str, Any]:
    stats = character.stats
    return {
        "id": character.id,
        "name": character.name,
        "rarity": character.tier.code,
        "level": character.level,
        "hp": stats.hp,
        "maxHp": stats.max_hp,
        "attack": stats.attack,
        "defense": stats.defense,
        "speed": stats.speed,
        "aura": character.affinity.value,
        "bps": character.income,
        "skills": [_encode_skill(s) for s in character.skills],
        "icon": character.icon,
        "saga": character.saga_id,
        "arc": character.arc_id,
        "owned": character.owned,
    }


def _encode_achievement(achievement: Achievement) -> Dict[str, Any]:
    reward: Dict[str, int] = {}
    if achievement.reward_berries is not None:
        reward["berries"] = achievement.reward_berries
    if achievement.reward_diamonds is not None:
        reward["diamonds"] = achievement.reward_diamonds
    return {
        "id": achievement.id,
        "name": achievement.name,
        "description": achievement.description,
        "reward": reward,
        "unlocked": achievement.unlocked,
    }


def encode_state(state: EconomyState) -> Dict[str, Any]:
    """
    Serialize a state into a save document.

    Example:
        >>> doc = encode_state(new_game_state(EconomyRules()))
        >>> doc["selectedCrew"], doc["bps"]
        (['luffy_east_blue'], 0.5)
    """
    return {
        "berries": state.berries,
        "bps": state.income_rate,
        "diamonds": state.diamonds,
        "characters": [encode_character(c) for c in state.characters.values()],
        "selectedCrew": list(state.crew),
        "treasureChestLevel": state.chest_level,
        "lastTreasureOpen": state.last_chest_open_ms,
        "lastGachaFree": state.last_free_draw_ms,
        "unlockedSagas": sorted(state.unlocked_sagas),
        "unlockedArcs": sorted(state.unlocked_arcs),
        "achievements": [_encode_achievement(a) for a in state.achievements],
    }


# ============================================================================
# DECODE
# ============================================================================


def _require(doc: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in doc:
        raise CorruptSaveError(f"{where}: missing field '{key}'")
    return doc[key]


def _as_number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CorruptSaveError(f"{where}: expected a number, got {value!r}")
    if not math.isfinite(value):
        raise CorruptSaveError(f"{where}: expected a finite number, got {value!r}")
    return float(value)


def _as_int(value: Any, where: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return math.floor(_as_number(value, where))


def _as_str(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise CorruptSaveError(f"{where}: expected a string, got {value!r}")
    return value


def _as_list(value: Any, where: str) -> List[Any]:
    if not isinstance(value, list):
        raise CorruptSaveError(f"{where}: expected a list, got {type(value).__name__}")
    return value


def _as_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise CorruptSaveError(f"{where}: expected an object, got {type(value).__name__}")
    return value


def _decode_skill(raw: Any, where: str) -> Skill:
    doc = _as_mapping(raw, where)
    try:
        category = SkillCategory(_as_str(_require(doc, "type", where), f"{where}.type"))
    except ValueError:
        raise CorruptSaveError(f"{where}: unknown skill type {doc.get('type')!r}") from None
    return Skill(
        name=_as_str(_require(doc, "name", where), f"{where}.name"),
        category=category,
        power=_as_int(_require(doc, "damage", where), f"{where}.damage"),
        description=_as_str(doc.get("description", ""), f"{where}.description"),
    )


def decode_character(raw: Any, where: str = "character") -> Character:
    doc = _as_mapping(raw, where)
    code = _as_str(_require(doc, "rarity", where), f"{where}.rarity")
    try:
        tier = RarityTier.from_code(code)
    except ValueError:
        raise CorruptSaveError(f"{where}: unknown rarity {code!r}") from None

    stats = CharacterStats(
        hp=_as_int(_require(doc, "hp", where), f"{where}.hp"),
        max_hp=_as_int(_require(doc, "maxHp", where), f"{where}.maxHp"),
        attack=_as_int(_require(doc, "attack", where), f"{where}.attack"),
        defense=_as_int(_require(doc, "defense", where), f"{where}.defense"),
        speed=_as_int(_require(doc, "speed", where), f"{where}.speed"),
    )
    skills = [
        _decode_skill(s, f"{where}.skills[{i}]")
        for i, s in enumerate(_as_list(_require(doc, "skills", where), f"{where}.skills"))
    ]
    return Character(
        character_id=_as_str(_require(doc, "id", where), f"{where}.id"),
        name=_as_str(_require(doc, "name", where), f"{where}.name"),
        tier=tier,
        level=_as_int(_require(doc, "level", where), f"{where}.level"),
        stats=stats,
        affinity=Affinity.from_string(_as_str(_require(doc, "aura", where), f"{where}.aura")),
        skills=skills,
        owned=_as_int(doc.get("owned", 1), f"{where}.owned"),
        icon=_as_str(doc.get("icon", ""), f"{where}.icon") or "🏴‍☠️",
        saga_id=_as_str(doc.get("saga", "east_blue"), f"{where}.saga"),
        arc_id=_as_str(doc.get("arc", "romance_dawn"), f"{where}.arc"),
    )


def _decode_achievement(raw: Any, where: str) -> Achievement:
    doc = _as_mapping(raw, where)
    reward = _as_mapping(doc.get("reward", {}), f"{where}.reward")
    berries = reward.get("berries")
    diamonds = reward.get("diamonds")
    return Achievement(
        id=_as_str(_require(doc, "id", where), f"{where}.id"),
        name=_as_str(_require(doc, "name", where), f"{where}.name"),
        description=_as_str(doc.get("description", ""), f"{where}.description"),
        reward_berries=None if berries is None else _as_int(berries, f"{where}.reward.berries"),
        reward_diamonds=None if diamonds is None else _as_int(diamonds, f"{where}.reward.diamonds"),
        unlocked=bool(doc.get("unlocked", False)),
    )


def _str_list(value: Any, where: str) -> List[str]:
    return [_as_str(v, f"{where}[{i}]") for i, v in enumerate(_as_list(value, where))]


def decode_state(raw: Any, rules: Optional[EconomyRules] = None) -> EconomyState:
    """
    Rebuild a state from a save document.

    Args:
        raw: Save document (JSON-compatible dict)
        rules: Balance rules; the crew capacity is checked against them

    Returns:
        EconomyState with its income rate recomputed from the characters

    Raises:
        CorruptSaveError: The document is not a valid save
    """
    rules = rules or EconomyRules()
    doc = _as_mapping(raw, "save")

    try:
        characters = [
            decode_character(c, f"characters[{i}]")
            for i, c in enumerate(_as_list(_require(doc, "characters", "save"), "characters"))
        ]
        crew = _str_list(doc.get("selectedCrew", []), "selectedCrew")
        if len(crew) > rules.crew_max_size:
            raise CorruptSaveError(
                f"selectedCrew has {len(crew)} members, capacity is {rules.crew_max_size}"
            )

        state = EconomyState(
            berries=_as_number(_require(doc, "berries", "save"), "berries"),
            diamonds=_as_int(_require(doc, "diamonds", "save"), "diamonds"),
            characters=characters,
            crew=crew,
            chest_level=_as_int(doc.get("treasureChestLevel", 1), "treasureChestLevel"),
            last_chest_open_ms=_as_int(doc.get("lastTreasureOpen", 0), "lastTreasureOpen"),
            last_free_draw_ms=_as_int(doc.get("lastGachaFree", 0), "lastGachaFree"),
            unlocked_sagas=_str_list(doc.get("unlockedSagas", ["east_blue"]), "unlockedSagas"),
            unlocked_arcs=_str_list(doc.get("unlockedArcs", ["romance_dawn"]), "unlockedArcs"),
            achievements=[
                _decode_achievement(a, f"achievements[{i}]")
                for i, a in enumerate(_as_list(doc.get("achievements", []), "achievements"))
            ],
        )
    except DomainValidationError as exc:
        field = f" ({exc.field})" if exc.field else ""
        raise CorruptSaveError(f"{exc}{field}") from exc

    stored_rate = doc.get("bps")
    if isinstance(stored_rate, (int, float)) and not isinstance(stored_rate, bool):
        if abs(stored_rate - state.income_rate) > INCOME_TOLERANCE:
            logger.warning(
                "Stored income rate does not match characters; using recomputed value",
                extra={"stored_bps": stored_rate, "recomputed_bps": state.income_rate},
            )

    return state
