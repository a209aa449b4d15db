"""Tests for the research state definition."""

from __future__ import annotations

from idea_validator.domain.values import ABSENT, is_absent
from idea_validator.graph.graph import STAGE_OWNERS
from idea_validator.graph.state import (
    FIELD_TYPES,
    INPUT_FIELDS,
    STAGE_FIELDS,
    initial_state,
    merge_patch,
)


class TestInitialState:
    def test_input_set_and_stage_fields_absent(self) -> None:
        state = initial_state("pet sitting marketplace", "for students")
        assert state["idea"] == "pet sitting marketplace"
        assert state["description"] == "for students"
        assert all(is_absent(state[name]) for name in STAGE_FIELDS)
        assert set(state) == set(INPUT_FIELDS) | set(STAGE_FIELDS)

    def test_absent_is_falsy_singleton(self) -> None:
        state = initial_state("x")
        assert state["verdict"] is ABSENT
        assert not state["verdict"]
        assert repr(ABSENT) == "ABSENT"


class TestMergePatch:
    def test_whole_field_replacement(self) -> None:
        state = initial_state("x")
        merged = merge_patch(state, {"queries": "plan"})
        assert merged["queries"] == "plan"
        assert is_absent(state["queries"])
        assert merged["idea"] == "x"


def test_every_stage_field_has_one_owner_and_type() -> None:
    assert sorted(STAGE_OWNERS.values()) == sorted(STAGE_FIELDS)
    assert set(FIELD_TYPES) == set(STAGE_FIELDS)
