"""
Pytest configuration and shared fixtures for testing.
"""
from typing import List

import pytest

from adaptive_exam.schemas.items import Item, TestPolicy

OPTION_KEYS = ("A", "B", "C", "D")


def _make_item(item_id: str, level: int, correct_key: str = "B") -> Item:
    """Build a four-option item whose correct answer is ``correct_key``."""
    return Item(
        id=item_id,
        stem=f"Question {item_id}",
        options=[{"key": key, "text": f"Option {key}"} for key in OPTION_KEYS],
        correct_key=correct_key,
        level=level,
    )


@pytest.fixture
def five_level_pool() -> List[Item]:
    """One item per level 1..5, in level order."""
    return [_make_item(f"q{level}", level) for level in range(1, 6)]


@pytest.fixture
def large_pool() -> List[Item]:
    """Four items per level, 20 items in total."""
    return [
        _make_item(f"q{level}-{i}", level, correct_key=OPTION_KEYS[i])
        for i in range(4)
        for level in range(1, 6)
    ]


@pytest.fixture
def scenario_policy() -> TestPolicy:
    """Short test: 3-5 items, stabilization within 0.25 over 3 responses."""
    return TestPolicy(
        min_items=3,
        max_items=5,
        stabilization_delta=0.25,
        stabilization_window=3,
        start_level=3,
    )
