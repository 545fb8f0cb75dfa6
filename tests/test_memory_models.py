"""Tests for memory and message models."""

import pytest

from src.memory.models import (
    CATEGORIES,
    Memory,
    Message,
    clamp_importance,
    normalize_category,
)


class TestNormalizeCategory:
    @pytest.mark.parametrize("category", CATEGORIES)
    def test_known_categories_pass_through(self, category):
        assert normalize_category(category) == category

    @pytest.mark.parametrize("value", ["bogus", "Preference", "", None, 3])
    def test_unknown_falls_back_to_general(self, value):
        assert normalize_category(value) == "general"


class TestClampImportance:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (7, 7),
            (99, 10),
            (-3, 1),
            (7.9, 7),
            ("8", 8),
            (" 4 ", 4),
            (float("inf"), 10),
            (float("-inf"), 1),
        ],
    )
    def test_clamps_into_range(self, value, expected):
        assert clamp_importance(value) == expected

    @pytest.mark.parametrize("value", [None, 0, "abc", "", True, float("nan"), [3]])
    def test_unusable_values_default_to_five(self, value):
        assert clamp_importance(value) == 5


class TestMemory:
    def test_defaults(self):
        m = Memory(content="Loves rain")
        assert m.category == "general"
        assert m.importance == 5
        assert m.id == ""

    def test_invalid_fields_are_normalised(self):
        m = Memory(content="Has a sister", category="bogus", importance=99)
        assert m.category == "general"
        assert m.importance == 10

    def test_from_row(self):
        m = Memory.from_row(("abc", "Likes chai", "preference", 6, "2025-01-01T00:00:00+00:00"))
        assert m.id == "abc"
        assert m.content == "Likes chai"
        assert m.category == "preference"
        assert m.importance == 6


class TestMessage:
    def test_from_row_coerces_image_flag(self):
        msg = Message.from_row(("m1", "assistant", "look!", "Playful", 1, "https://img", "ts"))
        assert msg.has_image is True
        assert msg.image_url == "https://img"
        assert msg.mood == "Playful"

    def test_to_api_message(self):
        msg = Message(role="user", content="hi", mood="Happy", has_image=False)
        assert msg.to_api_message() == {"role": "user", "content": "hi"}
