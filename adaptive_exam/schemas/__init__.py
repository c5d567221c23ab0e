"""
Pydantic schemas exchanged between the estimator core and its collaborators.
"""
from .attempts import AttemptSummary, LevelCount, ResponseRecord
from .items import MAX_LEVEL, MIN_LEVEL, AnswerOption, Item, TestPolicy

__all__ = [
    "AnswerOption",
    "Item",
    "TestPolicy",
    "MIN_LEVEL",
    "MAX_LEVEL",
    "ResponseRecord",
    "AttemptSummary",
    "LevelCount",
]
