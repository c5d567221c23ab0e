"""
CAT (Computerized Adaptive Testing) core for the adaptive exam package.

This module provides ability estimation, item selection, stopping rules and
the session state machine.
"""

from .ability_estimation import (
    ScoredResponse,
    estimate_ability,
    item_information,
    level_to_difficulty,
    probability_correct,
    standard_error,
    theta_to_level,
)
from .engine import (
    AdaptiveSession,
    StepResult,
)
from .item_selection import (
    LeveledItem,
    remaining_items,
    select_next_item,
)
from .stopping_rules import (
    StoppingDecision,
    check_stopping_criteria,
)

__all__ = [
    "ScoredResponse",
    "level_to_difficulty",
    "theta_to_level",
    "probability_correct",
    "item_information",
    "estimate_ability",
    "standard_error",
    "LeveledItem",
    "select_next_item",
    "remaining_items",
    "StoppingDecision",
    "check_stopping_criteria",
    "AdaptiveSession",
    "StepResult",
]
