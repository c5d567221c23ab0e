"""
Stopping rules for Computerized Adaptive Testing (CAT).

Stopping Rules (evaluated in priority order after each recorded response):
    1. Maximum items: Test stops unconditionally at policy.max_items
    2. Minimum items: Test must continue until policy.min_items are administered
    3. Stabilization: the spread (max - min) of the theta estimates from the
       last policy.stabilization_window responses is <= stabilization_delta,
       evaluated once at least max(min_items, window) items were administered
    4. Precision target: policy.sem_target is set and SEM <= sem_target

Rules 3 and 4 are alternatives. An estimate can settle numerically while
still being imprecise after a short run of uninformative items, so the test
ends on either convergence in value or convergence in confidence.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from adaptive_exam.schemas.items import TestPolicy
from libs.domain_types import StopReason

logger = logging.getLogger(__name__)


@dataclass
class StoppingDecision:
    """
    Result of evaluating stopping criteria for a CAT session.

    Attributes:
        should_stop: Whether the test should terminate.
        reason: Primary reason for stopping (if should_stop=True), or None.
        details: Diagnostic information including:
            - num_items: Number of items administered
            - sem: Current standard error of theta
            - min_items_met: Whether minimum items requirement is satisfied
            - at_max_items: Whether maximum items limit has been reached
            - theta_spread: max - min of the windowed thetas (None if the
              window was not evaluated)
            - stabilized: Whether the stabilization criterion holds
            - sem_target_met: Whether the SEM target holds (None if no target)
    """

    should_stop: bool
    reason: Optional[StopReason]
    details: Dict[str, Any]


def check_stopping_criteria(
    num_items: int,
    theta_history: Sequence[float],
    sem: float,
    policy: TestPolicy,
) -> StoppingDecision:
    """
    Evaluate all stopping criteria and determine whether the session should stop.

    Args:
        num_items: Number of responses recorded so far (history length).
        theta_history: Theta estimate recorded after each response, oldest
            first.
        sem: Standard error after the latest response.
        policy: Test policy holding the thresholds.

    Returns:
        StoppingDecision with should_stop flag, reason, and diagnostic details.

    Raises:
        ValueError: If num_items or sem is negative.
    """
    if num_items < 0:
        raise ValueError(f"Number of items must be non-negative, got {num_items}")
    if sem < 0:
        raise ValueError(f"Standard error must be non-negative, got {sem}")

    details: Dict[str, Any] = {
        "num_items": num_items,
        "sem": sem,
        "min_items_met": num_items >= policy.min_items,
        "at_max_items": num_items >= policy.max_items,
    }

    theta_spread = _theta_spread(num_items, theta_history, policy)
    stabilized = (
        theta_spread is not None and theta_spread <= policy.stabilization_delta
    )
    details["theta_spread"] = theta_spread
    details["stabilized"] = stabilized

    sem_target_met: Optional[bool] = None
    if policy.sem_target is not None:
        sem_target_met = sem <= policy.sem_target
    details["sem_target_met"] = sem_target_met

    # Rule 1: Maximum items, stop immediately (overrides all other rules)
    if num_items >= policy.max_items:
        logger.info(f"Stopping: reached maximum items ({num_items}/{policy.max_items})")
        return StoppingDecision(
            should_stop=True, reason=StopReason.MAX_ITEMS, details=details
        )

    # Rule 2: Minimum items, continue if not met
    if num_items < policy.min_items:
        logger.debug(
            f"Continuing: {num_items}/{policy.min_items} items administered "
            f"(below minimum)"
        )
        return StoppingDecision(should_stop=False, reason=None, details=details)

    # Rule 3: Stabilization of recent estimates
    if stabilized:
        logger.info(
            f"Stopping: theta stabilized (spread={theta_spread:.4f} <= "
            f"{policy.stabilization_delta:.4f} over last "
            f"{policy.stabilization_window}) after {num_items} items"
        )
        return StoppingDecision(
            should_stop=True, reason=StopReason.STABILIZED, details=details
        )

    # Rule 4: Precision target
    if sem_target_met:
        logger.info(
            f"Stopping: SEM target met (SEM={sem:.4f} <= {policy.sem_target:.4f}) "
            f"after {num_items} items"
        )
        return StoppingDecision(
            should_stop=True, reason=StopReason.SEM_TARGET, details=details
        )

    logger.debug(
        f"Continuing: SEM={sem:.4f}, spread={theta_spread}, items={num_items}"
    )
    return StoppingDecision(should_stop=False, reason=None, details=details)


def _theta_spread(
    num_items: int,
    theta_history: Sequence[float],
    policy: TestPolicy,
) -> Optional[float]:
    """
    Spread (max - min) of the windowed theta estimates, or None if the window
    cannot be evaluated yet.
    """
    window = policy.stabilization_window
    if num_items < max(policy.min_items, window) or len(theta_history) < window:
        return None
    recent = theta_history[-window:]
    return max(recent) - min(recent)
