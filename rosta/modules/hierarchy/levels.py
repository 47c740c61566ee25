"""
Hierarchy rank model.

Levels are ordered from most to least senior; a level's rank is its index in
that order, so a lower rank means more senior. Every function here is pure and
never raises: an unrecognised level is treated as the least senior one.
"""

from enum import Enum
from typing import List, Optional, Tuple, Union

from rosta.config.hierarchy_config import HIERARCHY_ORDER as _ORDER_NAMES, HIERARCHY_RULES


class HierarchyLevel(str, Enum):
    EMPLOYER = "employer"
    GM = "gm"
    AGM = "agm"
    SHIFT_LEADER = "shift_leader"
    WORKER = "worker"


LevelLike = Union[HierarchyLevel, str, None]

HIERARCHY_ORDER: Tuple[HierarchyLevel, ...] = tuple(HierarchyLevel(name) for name in _ORDER_NAMES)

if not HIERARCHY_ORDER or len(set(HIERARCHY_ORDER)) != len(HIERARCHY_ORDER):
    raise RuntimeError("Hierarchy order must be non-empty and free of duplicates")

LEAST_SENIOR = HIERARCHY_ORDER[-1]
LEAST_SENIOR_RANK = len(HIERARCHY_ORDER) - 1

_RANKS = {level: rank for rank, level in enumerate(HIERARCHY_ORDER)}


def parse_level(value: LevelLike) -> Optional[HierarchyLevel]:
    """Exact lookup; None for anything that is not a canonical level value."""
    if isinstance(value, HierarchyLevel):
        return value
    if not isinstance(value, str):
        return None
    try:
        return HierarchyLevel(value)
    except ValueError:
        return None


def level_or_default(value: LevelLike) -> HierarchyLevel:
    return parse_level(value) or LEAST_SENIOR


def rank_of(level: LevelLike) -> int:
    parsed = parse_level(level)
    if parsed is None:
        return LEAST_SENIOR_RANK
    return _RANKS[parsed]


def can_act_on(actor_level: LevelLike, target_level: LevelLike) -> bool:
    """True only when the actor is strictly more senior than the target."""
    return rank_of(actor_level) < rank_of(target_level)


# Edit, promote and assign checks share one rule
can_edit_target = can_act_on
can_edit_worker = can_act_on
can_promote_to = can_act_on


def allowed_subordinate_levels(actor_level: LevelLike) -> List[HierarchyLevel]:
    """Levels strictly below the actor, most senior first."""
    return list(HIERARCHY_ORDER[rank_of(actor_level) + 1:])


def allowed_assignable_levels(actor_level: LevelLike) -> List[HierarchyLevel]:
    """Subordinate levels minus employer, which is never assignable."""
    return [level for level in allowed_subordinate_levels(actor_level) if level != HierarchyLevel.EMPLOYER]


def is_at_least(level: LevelLike, required_level: LevelLike) -> bool:
    return rank_of(level) <= rank_of(required_level)


def change_direction(old_level: LevelLike, new_level: LevelLike) -> str:
    old_rank, new_rank = rank_of(old_level), rank_of(new_level)
    if new_rank < old_rank:
        return "promoted"
    if new_rank > old_rank:
        return "demoted"
    return "unchanged"


def invitable_levels(inviter_level: LevelLike) -> List[HierarchyLevel]:
    rules = HIERARCHY_RULES[level_or_default(inviter_level).value]
    return [HierarchyLevel(name) for name in rules["can_invite"]]


def can_invite(inviter_level: LevelLike, invitee_level: LevelLike) -> bool:
    invitee = parse_level(invitee_level)
    return invitee is not None and invitee in invitable_levels(inviter_level)
