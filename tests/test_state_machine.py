"""Tests for the dialogue step flow."""

import pytest

from booking_bot.conversation.fields import get_field_set
from booking_bot.conversation.state_machine import DialogueFlow, InvalidTransitionError
from booking_bot.schemas.session_schema import DialogueStep


class TestSplitFlow:
    def setup_method(self):
        self.flow = DialogueFlow.for_variant("split")

    def test_step_order(self):
        assert [s.value for s in self.flow.steps] == [
            "start", "name", "phone", "address", "email",
            "rooms", "hallways", "stairways", "pet_issue", "slot", "time",
        ]

    def test_first_field_step(self):
        assert self.flow.first_field_step == DialogueStep.NAME

    def test_next_step_advances_by_one(self):
        assert self.flow.next_step(DialogueStep.NAME) == DialogueStep.PHONE
        assert self.flow.next_step(DialogueStep.PET_ISSUE) == DialogueStep.SLOT
        assert self.flow.next_step(DialogueStep.SLOT) == DialogueStep.TIME

    def test_time_is_terminal(self):
        with pytest.raises(InvalidTransitionError, match="no successor"):
            self.flow.next_step(DialogueStep.TIME)

    def test_other_variant_step_is_rejected(self):
        assert not self.flow.contains(DialogueStep.AREAS)
        with pytest.raises(InvalidTransitionError, match="not part of this flow"):
            self.flow.next_step(DialogueStep.AREAS)

    def test_field_lookup(self):
        assert self.flow.field_for(DialogueStep.EMAIL).name == "email"
        assert self.flow.field_for(DialogueStep.SLOT) is None
        assert self.flow.is_field_step(DialogueStep.ROOMS)
        assert not self.flow.is_field_step(DialogueStep.START)


class TestAreasFlow:
    def test_combined_area_question(self):
        flow = DialogueFlow.for_variant("areas")
        assert flow.next_step(DialogueStep.EMAIL) == DialogueStep.AREAS
        assert flow.next_step(DialogueStep.AREAS) == DialogueStep.PET_ISSUE
        assert not flow.contains(DialogueStep.ROOMS)


class TestConstruction:
    def test_unknown_variant(self):
        with pytest.raises(ValueError, match="Unknown field variant"):
            DialogueFlow.for_variant("long")

    def test_empty_field_list(self):
        with pytest.raises(ValueError):
            DialogueFlow(())

    def test_custom_field_list(self):
        name, phone = get_field_set("split")[:2]
        flow = DialogueFlow((name, phone))
        assert flow.next_step(DialogueStep.PHONE) == DialogueStep.SLOT
