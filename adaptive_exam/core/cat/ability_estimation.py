"""
Maximum likelihood ability estimation for Computerized Adaptive Testing.

Items carry a discrete difficulty level (1-5) which is mapped linearly onto a
logit scale centred on level 3. Responses are modelled with the logistic IRT
model (discrimination fixed at 1.0, i.e. a one-parameter model):

    P(correct | theta, b, a) = 1 / (1 + exp(-a * (theta - b)))

Ability is estimated by a deterministic grid search of the log-likelihood over
[-3, 3] in steps of 0.1. The grid is kept instead of a Newton solver because
the estimates must be exactly reproducible.

Standard error follows from the test information at the estimate:

    SE(theta) = 1 / sqrt(sum_i I_i(theta)),   I_i = a^2 * P_i * (1 - P_i)
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from adaptive_exam.schemas.items import MAX_LEVEL, MIN_LEVEL

logger = logging.getLogger(__name__)

# Level 3 sits at theta 0; each level step is one logit
CENTER_LEVEL = 3
LOGITS_PER_LEVEL = 1.0

DEFAULT_DISCRIMINATION = 1.0

# Grid search configuration
THETA_GRID_MIN = -3.0
THETA_GRID_MAX = 3.0
THETA_GRID_STEP = 0.1
THETA_START = 0.0  # Initial best candidate, also the estimate with no responses

# Conservative error reported when the responses carry no information
DEFAULT_STANDARD_ERROR = 1.0


def _build_theta_grid() -> Tuple[float, ...]:
    n_steps = int(round((THETA_GRID_MAX - THETA_GRID_MIN) / THETA_GRID_STEP))
    return tuple(
        round(THETA_GRID_MIN + THETA_GRID_STEP * i, 10) for i in range(n_steps + 1)
    )


# 61 points: -3.0, -2.9, ..., 2.9, 3.0
THETA_GRID = _build_theta_grid()


@dataclass(frozen=True)
class ScoredResponse:
    """A scored response reduced to what the estimator needs."""

    correct: bool
    difficulty: float


ResponseLike = Union[ScoredResponse, Tuple[bool, float]]


def level_to_difficulty(level: int) -> float:
    """
    Map a discrete item level (1-5) onto the logit difficulty scale.

    Level 3 maps to 0.0 and each level step is one logit, so difficulties lie
    in [-2.0, 2.0].
    """
    return (level - CENTER_LEVEL) * LOGITS_PER_LEVEL


def theta_to_level(theta: float) -> int:
    """
    Project a continuous ability estimate onto the discrete 1-5 level scale.

    Rounds half up (2.5 -> 3) and clamps to [1, 5].
    """
    level = math.floor(theta / LOGITS_PER_LEVEL + CENTER_LEVEL + 0.5)
    return max(MIN_LEVEL, min(MAX_LEVEL, level))


def probability_correct(
    theta: float,
    difficulty: float,
    discrimination: float = DEFAULT_DISCRIMINATION,
) -> float:
    """
    Probability of a correct response under the logistic model.

    Args:
        theta: Ability on the logit scale.
        difficulty: Item difficulty (b) on the same scale.
        discrimination: Item discrimination (a). Callers pass 1.0.

    Returns:
        Probability in (0, 1).
    """
    logit = discrimination * (theta - difficulty)

    # Numerically stable sigmoid
    if logit >= 0:
        return 1.0 / (1.0 + math.exp(-logit))
    exp_logit = math.exp(logit)
    return exp_logit / (1.0 + exp_logit)


def item_information(
    theta: float,
    difficulty: float,
    discrimination: float = DEFAULT_DISCRIMINATION,
) -> float:
    """
    Fisher information of an item at a given ability level.

    I(theta) = a^2 * P(theta) * (1 - P(theta))

    Maximal (a^2 / 4) when theta equals the difficulty and decreasing
    symmetrically as |theta - difficulty| grows.
    """
    p = probability_correct(theta, difficulty, discrimination)
    return (discrimination**2) * p * (1.0 - p)


def estimate_ability(responses: Sequence[ResponseLike]) -> float:
    """
    Estimate ability by maximum likelihood over a fixed theta grid.

    The log-likelihood

        LL(theta) = sum_i [correct_i ? log P_i : log (1 - P_i)]

    is evaluated at every point of THETA_GRID, scanning left to right. The best
    candidate starts at THETA_START and is only replaced on a strictly greater
    log-likelihood, so ties resolve to the start value or the leftmost point.

    Args:
        responses: Scored responses, either ScoredResponse instances or
            (correct, difficulty) tuples.

    Returns:
        Theta estimate in [-3.0, 3.0]; 0.0 when there are no responses.
    """
    if not responses:
        return THETA_START

    pairs = _as_pairs(responses)

    best_theta = THETA_START
    best_log_lik = _log_likelihood(THETA_START, pairs)

    for theta in THETA_GRID:
        log_lik = _log_likelihood(theta, pairs)
        if log_lik > best_log_lik:
            best_log_lik = log_lik
            best_theta = theta

    return best_theta


def standard_error(theta: float, difficulties: Iterable[float]) -> float:
    """
    Standard error of measurement at theta for the administered items.

    Args:
        theta: Ability estimate.
        difficulties: Difficulties of all administered items.

    Returns:
        1 / sqrt(total information), or DEFAULT_STANDARD_ERROR when the total
        information is zero (no items, or none informative at theta).
    """
    total_information = sum(item_information(theta, b) for b in difficulties)
    if total_information <= 0.0:
        return DEFAULT_STANDARD_ERROR
    return 1.0 / math.sqrt(total_information)


def _as_pairs(responses: Sequence[ResponseLike]) -> List[Tuple[bool, float]]:
    pairs = []
    for response in responses:
        if isinstance(response, ScoredResponse):
            pairs.append((response.correct, response.difficulty))
        else:
            correct, difficulty = response
            pairs.append((bool(correct), float(difficulty)))
    return pairs


def _log_likelihood(theta: float, pairs: List[Tuple[bool, float]]) -> float:
    """
    Log-likelihood of the response vector at theta.

    Uses the stable log-sigmoid so extreme logits neither overflow nor
    produce log(0).
    """
    log_lik = 0.0
    for correct, difficulty in pairs:
        logit = DEFAULT_DISCRIMINATION * (theta - difficulty)
        if logit >= 0:
            log_1_plus_exp = math.log1p(math.exp(-logit))
            log_p_correct = -log_1_plus_exp
            log_p_incorrect = -logit - log_1_plus_exp
        else:
            log_1_plus_exp = math.log1p(math.exp(logit))
            log_p_correct = logit - log_1_plus_exp
            log_p_incorrect = -log_1_plus_exp

        log_lik += log_p_correct if correct else log_p_incorrect
    return log_lik
