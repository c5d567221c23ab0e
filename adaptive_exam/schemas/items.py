"""
Pydantic schemas for item bank contents and test policies.

Both models accept the camelCase field names stored in bank documents
(``correctKey``, ``minItems``, ...) as well as their snake_case names.
"""
from typing import Optional, Self, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Discrete difficulty scale shared by items, policies and ability levels
MIN_LEVEL = 1
MAX_LEVEL = 5


class AnswerOption(BaseModel):
    """A single answer option of a multiple-choice item."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Single-letter option key (e.g., 'A')")
    text: str = Field(..., description="Option text shown to the examinee")

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Validate that the key is a single letter."""
        if len(v) != 1 or not v.isalpha():
            raise ValueError(f"Option key must be a single letter, got {v!r}")
        return v


class Item(BaseModel):
    """Immutable multiple-choice question with a discrete difficulty level."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: str = Field(..., min_length=1, description="Item ID, unique within a pool")
    stem: str = Field(..., description="Question text")
    options: Tuple[AnswerOption, ...] = Field(
        ..., min_length=1, description="Answer options in display order"
    )
    correct_key: str = Field(..., description="Key of the correct option")
    level: int = Field(
        ..., ge=MIN_LEVEL, le=MAX_LEVEL, description="Difficulty level (1-5)"
    )

    @model_validator(mode="after")
    def validate_options(self) -> Self:
        """Validate option keys are unique and include the correct key."""
        keys = self.option_keys
        if len(set(keys)) != len(keys):
            raise ValueError(f"Option keys must be unique within item {self.id}")
        if self.correct_key not in keys:
            raise ValueError(
                f"correct_key {self.correct_key!r} is not among the options "
                f"{list(keys)} of item {self.id}"
            )
        return self

    @property
    def option_keys(self) -> Tuple[str, ...]:
        return tuple(option.key for option in self.options)

    def has_option(self, key: str) -> bool:
        return key in self.option_keys


class TestPolicy(BaseModel):
    """
    Adaptive test configuration for a bank.

    Immutable for the lifetime of a session. ``sem_target`` is optional; when
    present, reaching that standard error allows the test to stop early
    independently of the stabilization criterion.
    """

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    min_items: int = Field(default=8, ge=1, description="Minimum items (inclusive)")
    max_items: int = Field(default=18, ge=1, description="Maximum items (inclusive)")
    stabilization_delta: float = Field(
        default=0.25,
        ge=0.0,
        description="Max spread of recent theta estimates to declare stabilization",
    )
    stabilization_window: int = Field(
        default=3, ge=1, description="Number of recent responses inspected"
    )
    start_level: int = Field(
        default=3, ge=MIN_LEVEL, le=MAX_LEVEL, description="Initial presumed level"
    )
    sem_target: Optional[float] = Field(
        default=None, ge=0.0, description="Optional standard error stopping target"
    )

    @model_validator(mode="after")
    def validate_item_bounds(self) -> Self:
        """Validate that min_items does not exceed max_items."""
        if self.min_items > self.max_items:
            raise ValueError(
                f"min_items ({self.min_items}) must not exceed "
                f"max_items ({self.max_items})"
            )
        return self
