"""
Maximum Fisher Information (MFI) item selection for Computerized Adaptive Testing.

Selects the next item from the not-yet-administered pool that maximizes Fisher
information at the current ability estimate (theta). With discrimination fixed
at 1.0:

    I_i(theta) = P_i(theta) * (1 - P_i(theta))

Where P_i(theta) = 1 / (1 + exp(-(theta - b_i))) and b_i is derived from the
item's discrete level.

Selection is deterministic: the pool is scanned in order and the first item
with the strictly greatest information wins. There is no randomesque exposure
control; identical inputs always yield the same item.

References:
    - Lord, F. M. (1980). Applications of item response theory to practical
      testing problems. Hillsdale, NJ: Erlbaum.
"""

import logging
from typing import (
    Collection,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    TypeVar,
    runtime_checkable,
)

from adaptive_exam.core.cat.ability_estimation import (
    item_information,
    level_to_difficulty,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class LeveledItem(Protocol):
    """Protocol for items that carry an ID and a discrete difficulty level."""

    @property
    def id(self) -> str:
        ...

    @property
    def level(self) -> int:
        ...


class AnsweredRecord(Protocol):
    """Protocol for history records that reference an administered item."""

    @property
    def item_id(self) -> str:
        ...


ItemT = TypeVar("ItemT", bound=LeveledItem)


def select_next_item(
    item_pool: Sequence[ItemT],
    theta_estimate: float,
    administered_items: Optional[Collection[str]] = None,
) -> Optional[ItemT]:
    """
    Select the most informative item at the current ability estimate.

    Args:
        item_pool: Candidate items in a stable order.
        theta_estimate: Current ability estimate.
        administered_items: Optional IDs to skip (already administered).

    Returns:
        The item with the maximum information, the first one in pool order on
        ties, or None if no candidate remains. None is not an error; it means
        the item bank is exhausted and the test must end.
    """
    excluded = set(administered_items) if administered_items else set()

    best_item: Optional[ItemT] = None
    max_info = float("-inf")
    eligible = 0

    for item in item_pool:
        if item.id in excluded:
            continue
        eligible += 1
        info = item_information(theta_estimate, level_to_difficulty(item.level))
        if info > max_info:
            max_info = info
            best_item = item

    if best_item is None:
        logger.warning(
            "No eligible items remaining. "
            f"Pool size: {len(item_pool)}, administered: {len(excluded)}"
        )
        return None

    logger.debug(
        f"Item selection: theta={theta_estimate:.3f}, eligible={eligible}, "
        f"selected {best_item.id} (level={best_item.level}, info={max_info:.4f})"
    )
    return best_item


def remaining_items(
    item_pool: Sequence[ItemT],
    history: Iterable[AnsweredRecord],
) -> List[ItemT]:
    """
    Items of the pool not yet answered in the given history, in pool order.
    """
    answered = {record.item_id for record in history}
    return [item for item in item_pool if item.id not in answered]
