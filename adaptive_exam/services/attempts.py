"""
Attempt sink for finished adaptive sessions.

Persistence is owned by the surrounding application; this module only fixes
the contract (``AttemptSink``) and offers an in-memory store plus the level
distribution used by bank dashboards.
"""
import logging
import uuid
from collections import Counter
from typing import Dict, Iterable, List, Protocol, runtime_checkable

from adaptive_exam.core.exceptions import SessionStateError
from adaptive_exam.schemas.attempts import AttemptSummary, LevelCount
from libs.domain_types import AttemptStatus

logger = logging.getLogger(__name__)


@runtime_checkable
class AttemptSink(Protocol):
    """Consumes the summary of a finished session."""

    def save_attempt(self, summary: AttemptSummary) -> str:
        ...


def level_distribution(attempts: Iterable[AttemptSummary]) -> List[LevelCount]:
    """
    Count attempts per final level.

    Returns:
        One LevelCount per level that occurs, sorted by level ascending.
    """
    counts = Counter(attempt.final_level for attempt in attempts)
    return [
        LevelCount(level=level, count=count) for level, count in sorted(counts.items())
    ]


class InMemoryAttemptStore:
    """Attempt sink keeping summaries in a dictionary. Not thread-safe."""

    def __init__(self) -> None:
        self._attempts: Dict[str, AttemptSummary] = {}

    def save_attempt(self, summary: AttemptSummary) -> str:
        """
        Store a completed attempt and return its generated ID.

        Raises:
            SessionStateError: If the summary does not describe a completed
                attempt.
        """
        if summary.status is not AttemptStatus.COMPLETED:
            raise SessionStateError(
                "Only completed attempts can be saved",
                context={"status": summary.status.value},
            )
        attempt_id = uuid.uuid4().hex
        self._attempts[attempt_id] = summary
        logger.info(
            f"Saved attempt {attempt_id} for bank {summary.bank_id}: "
            f"level={summary.final_level}, items={summary.items_administered}"
        )
        return attempt_id

    def get_attempt(self, attempt_id: str) -> AttemptSummary:
        return self._attempts[attempt_id]

    def list_attempts(self, bank_id: str) -> List[AttemptSummary]:
        """Attempts of a bank in the order they were saved."""
        return [a for a in self._attempts.values() if a.bank_id == bank_id]

    def level_distribution(self, bank_id: str) -> List[LevelCount]:
        return level_distribution(self.list_attempts(bank_id))
