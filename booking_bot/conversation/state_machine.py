"""
Ordered step flow for the booking conversation.

The flow is derived from the configured field list: a greeting step, one
step per customer field, then day selection and time selection. Every
non-control message moves the conversation exactly one step forward; the
controller never skips or reorders steps.

Usage:
    flow = DialogueFlow.for_variant("split")
    flow.next_step(DialogueStep.NAME)
    # DialogueStep.PHONE
"""

import logging
from typing import Optional, Sequence

from booking_bot.conversation.fields import FieldDefinition, get_field_set
from booking_bot.schemas.session_schema import DialogueStep

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised when a step has no successor or is not part of the flow."""


class DialogueFlow:
    """
    Deterministic step sequence: start -> fields... -> slot -> time.

    ``time`` is terminal: the only way out of it is a committed booking
    (which clears the session), ``back`` to ``slot``, or a control token.
    """

    def __init__(self, fields: Sequence[FieldDefinition]) -> None:
        if not fields:
            raise ValueError("A dialogue flow needs at least one field to collect")
        self.fields: tuple[FieldDefinition, ...] = tuple(fields)
        self._by_step = {f.step: f for f in self.fields}
        self.steps: tuple[DialogueStep, ...] = (
            DialogueStep.START,
            *(f.step for f in self.fields),
            DialogueStep.SLOT,
            DialogueStep.TIME,
        )

    @classmethod
    def for_variant(cls, variant: str) -> "DialogueFlow":
        return cls(get_field_set(variant))

    @property
    def first_field_step(self) -> DialogueStep:
        return self.fields[0].step

    def contains(self, step: DialogueStep) -> bool:
        return step in self.steps

    def next_step(self, step: DialogueStep) -> DialogueStep:
        """Return the step that follows ``step``.

        Raises:
            InvalidTransitionError: If the step is terminal or not in this flow.
        """
        if step not in self.steps:
            raise InvalidTransitionError(
                f"Step '{step.value}' is not part of this flow. "
                f"Valid steps: {[s.value for s in self.steps]}"
            )
        index = self.steps.index(step)
        if index == len(self.steps) - 1:
            raise InvalidTransitionError(f"Step '{step.value}' has no successor")
        new_step = self.steps[index + 1]
        logger.debug("Step transition: %s -> %s", step.value, new_step.value)
        return new_step

    def field_for(self, step: DialogueStep) -> Optional[FieldDefinition]:
        """The field collected at ``step``, or None for start/slot/time."""
        return self._by_step.get(step)

    def is_field_step(self, step: DialogueStep) -> bool:
        return step in self._by_step
