"""
Pydantic schemas for administered responses and stored attempts.
"""
from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from libs.domain_types import AttemptStatus, StopReason


class ResponseRecord(BaseModel):
    """One answered item in a session's history. Never mutated after append."""

    model_config = ConfigDict(frozen=True)

    item_id: str = Field(..., description="ID of the administered item")
    level_shown: int = Field(..., description="Level the item was presented at")
    answer_key: str = Field(..., description="Answer key submitted")
    correct: bool = Field(..., description="Whether the answer was correct")
    level_after: int = Field(
        ..., description="Discrete ability level right after this response"
    )
    theta: float = Field(..., description="Ability estimate after this response")
    sem: float = Field(..., description="Standard error after this response")


class AttemptSummary(BaseModel):
    """Snapshot of a finished session, handed to the attempt sink."""

    model_config = ConfigDict(frozen=True)

    bank_id: Optional[str] = Field(None, description="Bank the items came from")
    examinee_id: Optional[str] = Field(None, description="Who took the test")
    status: AttemptStatus = Field(default=AttemptStatus.COMPLETED)
    started_at: datetime = Field(..., description="When the session was started")
    finished_at: datetime = Field(..., description="When the session finished")
    history: Tuple[ResponseRecord, ...] = Field(
        default=(), description="Responses in administration order"
    )
    final_theta: float = Field(..., description="Final ability estimate")
    final_level: int = Field(..., description="Final discrete ability level")
    final_sem: Optional[float] = Field(
        None, description="Final standard error (None when nothing was answered)"
    )
    stop_reason: Optional[StopReason] = Field(None, description="Why the test ended")
    items_administered: int = Field(..., ge=0)
    correct_count: int = Field(..., ge=0)


class LevelCount(BaseModel):
    """Number of attempts that ended at a given ability level."""

    level: int
    count: int
