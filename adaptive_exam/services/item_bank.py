"""
Item and policy sources for adaptive sessions.

The estimator never writes to an item store; it only needs the items and the
policy of a bank. ``ItemSource`` and ``PolicySource`` describe that contract.
``InMemoryItemBank`` implements both for a single process and is what the
tests and the demo bank use.
"""
import logging
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)

from pydantic import ValidationError

from adaptive_exam.core.cat.engine import AdaptiveSession
from adaptive_exam.core.config import settings
from adaptive_exam.core.exceptions import ItemBankError
from adaptive_exam.schemas.items import MAX_LEVEL, MIN_LEVEL, Item, TestPolicy

logger = logging.getLogger(__name__)

DEMO_BANK_ID = "demo"

# One item per level, from arithmetic up to a first limit
DEMO_ITEMS: List[Dict[str, Any]] = [
    {
        "id": "demo-1",
        "stem": "2 + 2 = ?",
        "options": [
            {"key": "A", "text": "3"},
            {"key": "B", "text": "4"},
            {"key": "C", "text": "5"},
            {"key": "D", "text": "2"},
        ],
        "correctKey": "B",
        "level": 1,
    },
    {
        "id": "demo-2",
        "stem": "5 × 6 = ?",
        "options": [
            {"key": "A", "text": "11"},
            {"key": "B", "text": "35"},
            {"key": "C", "text": "30"},
            {"key": "D", "text": "56"},
        ],
        "correctKey": "C",
        "level": 2,
    },
    {
        "id": "demo-3",
        "stem": "Square root of 81",
        "options": [
            {"key": "A", "text": "8"},
            {"key": "B", "text": "9"},
            {"key": "C", "text": "7"},
            {"key": "D", "text": "6"},
        ],
        "correctKey": "B",
        "level": 3,
    },
    {
        "id": "demo-4",
        "stem": "Derivative of x^2",
        "options": [
            {"key": "A", "text": "x"},
            {"key": "B", "text": "2x"},
            {"key": "C", "text": "x^3"},
            {"key": "D", "text": "2"},
        ],
        "correctKey": "B",
        "level": 4,
    },
    {
        "id": "demo-5",
        "stem": "Limit of sin(x)/x as x approaches 0",
        "options": [
            {"key": "A", "text": "0"},
            {"key": "B", "text": "1"},
            {"key": "C", "text": "Does not exist"},
            {"key": "D", "text": "∞"},
        ],
        "correctKey": "B",
        "level": 5,
    },
]


@runtime_checkable
class ItemSource(Protocol):
    """Supplies the immutable item list of a bank."""

    def load_items(self, bank_id: str) -> List[Item]:
        ...


@runtime_checkable
class PolicySource(Protocol):
    """Supplies the test policy of a bank."""

    def load_policy(self, bank_id: str) -> TestPolicy:
        ...


class InMemoryItemBank:
    """Item and policy source backed by dictionaries. Not thread-safe."""

    def __init__(self) -> None:
        self._items: Dict[str, List[Item]] = {}
        self._policies: Dict[str, TestPolicy] = {}

    def add_bank(
        self,
        bank_id: str,
        items: Iterable[Union[Item, Mapping[str, Any]]],
        policy: Optional[Union[TestPolicy, Mapping[str, Any]]] = None,
    ) -> None:
        """
        Register (or replace) a bank.

        Args:
            bank_id: Bank identifier.
            items: Items of the bank; mappings are validated into Item.
            policy: Optional policy; banks without one use the settings default.

        Raises:
            ItemBankError: If an item or the policy is invalid, or item IDs
                repeat within the bank.
        """
        validated: List[Item] = []
        seen_ids = set()
        for raw in items:
            try:
                item = raw if isinstance(raw, Item) else Item.model_validate(raw)
            except ValidationError as e:
                raise ItemBankError(
                    "Invalid item", original_error=e, context={"bank_id": bank_id}
                ) from e
            if item.id in seen_ids:
                raise ItemBankError(
                    "Duplicate item ID in bank",
                    context={"bank_id": bank_id, "item_id": item.id},
                )
            seen_ids.add(item.id)
            validated.append(item)

        self._items[bank_id] = validated
        if policy is None:
            self._policies.pop(bank_id, None)
        else:
            try:
                self._policies[bank_id] = (
                    policy
                    if isinstance(policy, TestPolicy)
                    else TestPolicy.model_validate(policy)
                )
            except ValidationError as e:
                raise ItemBankError(
                    "Invalid bank policy",
                    original_error=e,
                    context={"bank_id": bank_id},
                ) from e

        logger.info(f"Registered bank {bank_id} with {len(validated)} items")

    def bank_ids(self) -> List[str]:
        return sorted(self._items)

    def load_items(self, bank_id: str) -> List[Item]:
        if bank_id not in self._items:
            raise ItemBankError("Unknown bank", context={"bank_id": bank_id})
        return list(self._items[bank_id])

    def load_policy(self, bank_id: str) -> TestPolicy:
        if bank_id not in self._items:
            raise ItemBankError("Unknown bank", context={"bank_id": bank_id})
        policy = self._policies.get(bank_id)
        if policy is None:
            return settings.default_policy()
        return policy

    def items_by_level(self, bank_id: str) -> Dict[int, List[Item]]:
        """Group the bank's items by level; every level 1-5 is present."""
        grouped: Dict[int, List[Item]] = {
            level: [] for level in range(MIN_LEVEL, MAX_LEVEL + 1)
        }
        for item in self.load_items(bank_id):
            grouped[item.level].append(item)
        return grouped


def seed_demo_bank(bank: InMemoryItemBank, bank_id: str = DEMO_BANK_ID) -> str:
    """Register the five-item demo bank and return its ID."""
    bank.add_bank(bank_id, DEMO_ITEMS)
    return bank_id


def start_session(
    items: ItemSource,
    policies: PolicySource,
    bank_id: str,
    examinee_id: Optional[str] = None,
) -> AdaptiveSession:
    """
    Load a bank's items and policy and start an adaptive session over them.

    The returned session is already started; check ``session.finished`` for
    an empty bank.
    """
    session = AdaptiveSession(
        items=items.load_items(bank_id),
        policy=policies.load_policy(bank_id),
        bank_id=bank_id,
        examinee_id=examinee_id,
    )
    session.start()
    return session
