"""
AdaptiveSession: state machine driving one adaptive test.

Owns the mutable state of a single examinee's test (history, current ability,
current item) and applies item selection, ability estimation (grid-search MLE)
and the stopping rules on each response. There is no module-level state; every
session is an independently constructed object and must be driven by a single
caller at a time.

States:
    NOT_STARTED --start()--> IN_PROGRESS --answer()*--> FINISHED
    any state  --reset()--> NOT_STARTED

start() on an empty pool goes straight to FINISHED.
"""
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from adaptive_exam.core.cat.ability_estimation import (
    ScoredResponse,
    estimate_ability,
    level_to_difficulty,
    standard_error,
    theta_to_level,
)
from adaptive_exam.core.cat.item_selection import remaining_items, select_next_item
from adaptive_exam.core.cat.stopping_rules import check_stopping_criteria
from adaptive_exam.core.datetime_utils import utc_now
from adaptive_exam.core.exceptions import ConfigurationError, SessionStateError
from adaptive_exam.core.logging_config import session_id_context
from adaptive_exam.schemas.attempts import AttemptSummary, ResponseRecord
from adaptive_exam.schemas.items import Item, TestPolicy
from libs.domain_types import AttemptStatus, SessionStatus, StopReason

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Result after processing a single answer."""

    record: ResponseRecord
    finished: bool
    stop_reason: Optional[StopReason]
    next_item: Optional[Item]


class AdaptiveSession:
    """
    Session controller for one adaptive test attempt.

    Manages:
    - Policy and pool validation at construction
    - First item selection on start()
    - Scoring, theta/level/SEM re-estimation and history bookkeeping on answer()
    - Stopping rule evaluation and next-item selection
    - Restoring the initial state on reset()
    """

    def __init__(
        self,
        items: Sequence[Union[Item, Mapping[str, Any]]],
        policy: Union[TestPolicy, Mapping[str, Any]],
        bank_id: Optional[str] = None,
        examinee_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ):
        """
        Create a session over a fixed item pool.

        Args:
            items: Item pool in selection order. Mappings are validated into
                Item instances.
            policy: TestPolicy, or a mapping of policy fields (snake_case or
                camelCase).
            bank_id: Optional bank identifier, carried into the attempt summary.
            examinee_id: Optional examinee identifier, carried into the summary.
            session_id: Optional identifier used for log correlation; a random
                one is generated when omitted.

        Raises:
            ConfigurationError: If the policy or an item is malformed, or the
                pool contains duplicate item IDs.
        """
        self.session_id = session_id or uuid.uuid4().hex
        self.bank_id = bank_id
        self.examinee_id = examinee_id
        self._policy = _validate_policy(policy)
        self._items: Tuple[Item, ...] = _validate_items(items)

        self._status = SessionStatus.NOT_STARTED
        self._theta = level_to_difficulty(self._policy.start_level)
        self._level = self._policy.start_level
        self._current: Optional[Item] = None
        self._history: List[ResponseRecord] = []
        self._stop_reason: Optional[StopReason] = None
        self._started_at: Optional[datetime] = None
        self._finished_at: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def policy(self) -> TestPolicy:
        return self._policy

    @property
    def items(self) -> Tuple[Item, ...]:
        return self._items

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def finished(self) -> bool:
        return self._status is SessionStatus.FINISHED

    @property
    def current(self) -> Optional[Item]:
        return self._current

    @property
    def theta(self) -> float:
        return self._theta

    @property
    def level(self) -> int:
        return self._level

    @property
    def sem(self) -> Optional[float]:
        """Standard error after the latest response, or None before any."""
        if not self._history:
            return None
        return self._history[-1].sem

    @property
    def history(self) -> Tuple[ResponseRecord, ...]:
        return tuple(self._history)

    @property
    def correct_count(self) -> int:
        return sum(1 for record in self._history if record.correct)

    @property
    def stop_reason(self) -> Optional[StopReason]:
        return self._stop_reason

    def remaining_items(self) -> List[Item]:
        """Pool items not yet answered, in pool order."""
        return remaining_items(self._items, self._history)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> Optional[Item]:
        """
        Start the session and select the first item.

        Returns:
            The first item to present, or None if the pool is empty (the
            session is then already finished).

        Raises:
            SessionStateError: If the session was already started and not reset.
        """
        if self._status is not SessionStatus.NOT_STARTED:
            raise SessionStateError(
                "Session already started; call reset() before starting again",
                context={"session_id": self.session_id, "status": self._status.value},
            )

        with self._log_context():
            self._theta = level_to_difficulty(self._policy.start_level)
            self._level = self._policy.start_level
            self._history = []
            self._stop_reason = None
            self._started_at = utc_now()
            self._finished_at = None

            first = select_next_item(self._items, self._theta)
            if first is None:
                logger.info(
                    f"Session {self.session_id}: empty item pool, finishing immediately"
                )
                self._finish(StopReason.POOL_EXHAUSTED)
                return None

            self._current = first
            self._status = SessionStatus.IN_PROGRESS
            logger.info(
                f"Started session {self.session_id} (bank={self.bank_id}, "
                f"pool={len(self._items)}, start_level={self._level}, "
                f"first item={first.id})"
            )
            return first

    def answer(self, answer_key: str) -> StepResult:
        """
        Score an answer to the current item and advance the session.

        The answer is scored against the current item's correct key, theta is
        re-estimated over the full history including this response, the level
        and standard error are recomputed, and the response is appended to the
        history. The stopping rule is then evaluated; if the test continues,
        the most informative remaining item becomes current.

        An answer key that is not among the item's options is scored as
        incorrect.

        Args:
            answer_key: Key of the option chosen by the examinee.

        Returns:
            StepResult with the appended record and the stopping outcome.

        Raises:
            SessionStateError: If there is no current item (session not
                started or already finished).
        """
        if self._status is not SessionStatus.IN_PROGRESS or self._current is None:
            raise SessionStateError(
                "answer() called with no current item",
                context={"session_id": self.session_id, "status": self._status.value},
            )

        with self._log_context():
            item = self._current
            if not item.has_option(answer_key):
                logger.warning(
                    f"Session {self.session_id}: answer key {answer_key!r} is not "
                    f"an option of item {item.id}; scoring as incorrect"
                )
            correct = answer_key == item.correct_key

            responses = [
                ScoredResponse(
                    correct=record.correct,
                    difficulty=level_to_difficulty(record.level_shown),
                )
                for record in self._history
            ]
            responses.append(
                ScoredResponse(
                    correct=correct, difficulty=level_to_difficulty(item.level)
                )
            )

            theta = estimate_ability(responses)
            level = theta_to_level(theta)
            sem = standard_error(theta, [r.difficulty for r in responses])

            record = ResponseRecord(
                item_id=item.id,
                level_shown=item.level,
                answer_key=answer_key,
                correct=correct,
                level_after=level,
                theta=theta,
                sem=sem,
            )
            self._history.append(record)
            self._theta = theta
            self._level = level

            num_items = len(self._history)
            logger.debug(
                f"Session {self.session_id}: Response #{num_items} "
                f"({item.id}, correct={correct}) -> theta={theta:.3f}, "
                f"level={level}, SEM={sem:.3f}",
                extra={"item_id": item.id, "theta": theta, "sem": sem},
            )

            decision = check_stopping_criteria(
                num_items=num_items,
                theta_history=[r.theta for r in self._history],
                sem=sem,
                policy=self._policy,
            )
            if decision.should_stop:
                assert decision.reason is not None
                self._finish(decision.reason)
                return StepResult(
                    record=record,
                    finished=True,
                    stop_reason=decision.reason,
                    next_item=None,
                )

            next_item = select_next_item(
                self._items,
                theta,
                administered_items={r.item_id for r in self._history},
            )
            if next_item is None:
                self._finish(StopReason.POOL_EXHAUSTED)
                return StepResult(
                    record=record,
                    finished=True,
                    stop_reason=StopReason.POOL_EXHAUSTED,
                    next_item=None,
                )

            self._current = next_item
            return StepResult(
                record=record, finished=False, stop_reason=None, next_item=next_item
            )

    def reset(self) -> None:
        """Return to NOT_STARTED with the policy's start values. Idempotent."""
        self._status = SessionStatus.NOT_STARTED
        self._theta = level_to_difficulty(self._policy.start_level)
        self._level = self._policy.start_level
        self._current = None
        self._history = []
        self._stop_reason = None
        self._started_at = None
        self._finished_at = None

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def to_attempt_summary(self) -> AttemptSummary:
        """
        Snapshot the finished session for the attempt sink.

        Raises:
            SessionStateError: If the session has not finished.
        """
        if not self.finished:
            raise SessionStateError(
                "Attempt summary is only available for finished sessions",
                context={"session_id": self.session_id, "status": self._status.value},
            )
        assert self._started_at is not None and self._finished_at is not None

        return AttemptSummary(
            bank_id=self.bank_id,
            examinee_id=self.examinee_id,
            status=AttemptStatus.COMPLETED,
            started_at=self._started_at,
            finished_at=self._finished_at,
            history=tuple(self._history),
            final_theta=self._theta,
            final_level=self._level,
            final_sem=self.sem,
            stop_reason=self._stop_reason,
            items_administered=len(self._history),
            correct_count=self.correct_count,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finish(self, reason: StopReason) -> None:
        self._status = SessionStatus.FINISHED
        self._current = None
        self._stop_reason = reason
        self._finished_at = utc_now()
        logger.info(
            f"Session {self.session_id} finished: theta={self._theta:.3f}, "
            f"level={self._level}, items={len(self._history)}, "
            f"correct={self.correct_count}, stop_reason={reason.value}",
            extra={"bank_id": self.bank_id, "stop_reason": reason.value},
        )

    @contextmanager
    def _log_context(self) -> Iterator[None]:
        token = session_id_context.set(self.session_id)
        try:
            yield
        finally:
            session_id_context.reset(token)


def _validate_policy(policy: Union[TestPolicy, Mapping[str, Any]]) -> TestPolicy:
    data = policy.model_dump() if isinstance(policy, TestPolicy) else policy
    try:
        return TestPolicy.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid test policy", original_error=e, context={"policy": data}
        ) from e


def _validate_items(
    items: Sequence[Union[Item, Mapping[str, Any]]],
) -> Tuple[Item, ...]:
    validated: List[Item] = []
    seen_ids = set()
    for index, raw in enumerate(items):
        try:
            item = raw if isinstance(raw, Item) else Item.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid item in pool", original_error=e, context={"index": index}
            ) from e
        if item.id in seen_ids:
            raise ConfigurationError(
                "Duplicate item ID in pool", context={"item_id": item.id}
            )
        seen_ids.add(item.id)
        validated.append(item)
    return tuple(validated)
