"""
In-process collaborators of the estimator: item/policy sources and attempt sinks.
"""
from .attempts import AttemptSink, InMemoryAttemptStore, level_distribution
from .item_bank import (
    InMemoryItemBank,
    ItemSource,
    PolicySource,
    seed_demo_bank,
    start_session,
)

__all__ = [
    "ItemSource",
    "PolicySource",
    "InMemoryItemBank",
    "seed_demo_bank",
    "start_session",
    "AttemptSink",
    "InMemoryAttemptStore",
    "level_distribution",
]
