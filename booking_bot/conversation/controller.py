"""
Dialogue controller: one inbound message in, one reply out.

Each turn loads the customer's session, applies control intents (greeting,
restart, menu, info keywords) from any step, otherwise advances the flow by
exactly one step. At the slot and time steps every path is reduced to a
"Book <time> <day>" request handed to the booking engine; a successful
booking is persisted, the administrator is notified and the session is
cleared.

Usage:
    controller = DialogueController(sessions, engine, appointments, notifier)
    reply = await controller.handle_message("whatsapp:+15550100", "hi")
    print(reply.text)
"""

import re
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from booking_bot.config import AppConfig, settings
from booking_bot.conversation import prompts
from booking_bot.conversation.fields import area_summary
from booking_bot.conversation.intents import ControlIntent, detect_control_intent, sanitize_input
from booking_bot.conversation.session_store import STEP_FIELD, SessionStore
from booking_bot.conversation.state_machine import DialogueFlow
from booking_bot.logging_context import get_turn_logger, set_user_key
from booking_bot.schemas.booking_schema import (
    BookingResult,
    CustomerDetails,
    NotificationPayload,
)
from booking_bot.schemas.conversation_schema import TurnReply
from booking_bot.schemas.session_schema import DialogueStep, Session
from booking_bot.storage.appointments import AppointmentStore, SlotConflictError
from booking_bot.tools.availability import (
    BOOKING_PATTERN,
    DayAvailability,
    extract_time,
    weekly_availability,
)
from booking_bot.tools.booking import BookingEngine
from booking_bot.tools.notify import AdminNotifier

logger = get_turn_logger(__name__)

SELECTED_DAY_FIELD = "selected_day"
BACK_TOKENS = frozenset(["back", "change day", "another day"])
_NUMBER = re.compile(r"^\s*(\d{1,2})\s*[.)]?\s*$")


def _choice_number(text: str) -> Optional[int]:
    match = _NUMBER.match(text)
    return int(match.group(1)) if match else None


class DialogueController:
    """Drives a customer from greeting to a confirmed appointment."""

    def __init__(
        self,
        sessions: SessionStore,
        engine: BookingEngine,
        appointments: AppointmentStore,
        notifier: AdminNotifier,
        config: Optional[AppConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.sessions = sessions
        self.engine = engine
        self.appointments = appointments
        self.notifier = notifier
        self.config = config or settings
        self.business = self.config.business
        self.flow = DialogueFlow.for_variant(self.config.dialogue.field_variant)
        self._clock = clock

    async def handle_message(self, raw_user: str, text: Optional[str]) -> TurnReply:
        """Process one inbound message. Never raises; failures get a fallback reply."""
        user_key = self.sessions.normalize(raw_user)
        set_user_key(user_key)
        try:
            message = sanitize_input(text, self.config.dialogue.max_message_length).text
            return await self._dispatch(user_key, message)
        except Exception:
            logger.exception("Unhandled error while processing message")
            return TurnReply(user_key=user_key, messages=[prompts.FALLBACK_REPLY])

    async def _dispatch(self, user_key: str, message: str) -> TurnReply:
        session = await self.sessions.get_session(user_key)
        logger.debug("Inbound message at step %s", session.step.value)

        intent = detect_control_intent(message)
        if intent is not None:
            reply = await self._handle_control(session, intent)
            if reply is not None:
                return reply

        step = session.step
        if step == DialogueStep.START:
            return await self._begin(user_key)
        if self.flow.is_field_step(step):
            return await self._collect_field(session, message)
        if step == DialogueStep.SLOT:
            return await self._choose_day(session, message)
        if step == DialogueStep.TIME:
            return await self._choose_time(session, message)

        # A step from the other field variant, left over from a config change.
        logger.warning("Session parked at step %s outside the current flow, restarting", step.value)
        return await self._begin(user_key)

    # -- control intents ----------------------------------------------------

    async def _handle_control(self, session: Session, intent: ControlIntent) -> Optional[TurnReply]:
        if intent == ControlIntent.GREETING:
            logger.info("Greeting received, starting a fresh booking")
            return await self._begin(session.user_key)
        if intent == ControlIntent.RESTART:
            logger.info("Restart requested")
            return await self._begin(session.user_key, restart=True)
        if session.step == DialogueStep.START:
            # Nothing to return to yet; the first message always opens the dialogue.
            return None
        if intent == ControlIntent.MENU:
            text = prompts.build_menu(self.business, session.get("name"))
        elif intent == ControlIntent.SPECIALS:
            text = prompts.build_specials_reply(self.business)
        elif intent == ControlIntent.QUOTE:
            text = prompts.build_quote_reply(self.business)
        else:
            text = prompts.build_reviews_reply(self.business)
        return self._reply(session, [text])

    async def _begin(self, user_key: str, restart: bool = False) -> TurnReply:
        """Clear everything collected so far and ask the first question."""
        first = self.flow.first_field_step
        session = await self.sessions.reset_session(user_key, first)
        prompt = self.flow.field_for(first).prompt
        if restart:
            text = prompts.build_restart(prompt)
        else:
            text = prompts.build_welcome(self.business, prompt)
        return self._reply(session, [text])

    # -- field collection ---------------------------------------------------

    async def _collect_field(self, session: Session, message: str) -> TurnReply:
        field = self.flow.field_for(session.step)
        if not message:
            return self._reply(session, [prompts.build_field_prompt(field)])

        next_step = self.flow.next_step(session.step)
        value = field.normalize(message)
        session = await self.sessions.update_fields(
            session.user_key, {field.name: value, STEP_FIELD: next_step.value}
        )
        logger.info("Collected %s, moving to %s", field.name, next_step.value)

        next_field = self.flow.field_for(next_step)
        if next_field is not None:
            return self._reply(session, [prompts.build_field_prompt(next_field)])
        days = await self._availability()
        return self._reply(session, [prompts.build_weekly_overview(days)])

    # -- slot selection -----------------------------------------------------

    async def _availability(self) -> list[DayAvailability]:
        taken = await self.appointments.taken_slots()
        return weekly_availability(self._clock(), taken, self.business)

    async def _choose_day(self, session: Session, message: str) -> TurnReply:
        if BOOKING_PATTERN.search(message):
            return await self._book(session, message)

        days = await self._availability()
        number = _choice_number(message)
        if number is None:
            return self._reply(session, [prompts.build_weekly_overview(days)])
        if not 1 <= number <= len(days):
            return self._reply(session, [prompts.build_day_choice_retry(days)])

        day = days[number - 1]
        session = await self.sessions.update_fields(
            session.user_key, {SELECTED_DAY_FIELD: day.day, STEP_FIELD: DialogueStep.TIME.value}
        )
        logger.info("Day %s selected", day.day)
        return self._reply(session, [prompts.build_day_times(day)])

    async def _selected_day(self, session: Session) -> Optional[DayAvailability]:
        name = session.get(SELECTED_DAY_FIELD)
        for day in await self._availability():
            if day.day == name:
                return day
        return None

    async def _choose_time(self, session: Session, message: str) -> TurnReply:
        if message.lower() in BACK_TOKENS:
            session = await self.sessions.update_session(
                session.user_key, STEP_FIELD, DialogueStep.SLOT.value
            )
            days = await self._availability()
            return self._reply(session, [prompts.build_weekly_overview(days)])

        if BOOKING_PATTERN.search(message):
            return await self._book(session, message)

        day = await self._selected_day(session)
        if day is None:
            # The selected day rolled out of the booking window since it was chosen.
            session = await self.sessions.update_session(
                session.user_key, STEP_FIELD, DialogueStep.SLOT.value
            )
            days = await self._availability()
            return self._reply(session, [prompts.build_weekly_overview(days)])

        number = _choice_number(message)
        if number is not None:
            if 1 <= number <= len(day.times):
                return await self._book(session, f"Book {day.times[number - 1]} {day.day}")
            return self._reply(session, [prompts.build_day_times(day)])

        time_token = extract_time(message)
        if time_token is not None:
            return await self._book(session, f"Book {time_token} {day.day}")
        return self._reply(session, [prompts.build_day_times(day)])

    # -- booking commit -----------------------------------------------------

    async def _book(self, session: Session, request_text: str) -> TurnReply:
        user_key = session.user_key
        result = await self.engine.book_slot(request_text, user_key)
        if not result.success:
            if result.conflict:
                return await self._conflict(session, result)
            return self._reply(session, [result.message], booking=result)

        session = await self.sessions.update_fields(
            user_key, {"slot": result.slot, "worker": result.worker}
        )
        details = self._customer_details(session)
        try:
            record = await self.appointments.insert(user_key, result.slot, result.worker, details)
        except SlotConflictError as exc:
            logger.info("Lost the race for %s", exc.slot)
            lost = BookingResult(
                success=False,
                slot=exc.slot,
                message=f"Slot {exc.slot} is already booked. Please try another time.",
                conflict=True,
            )
            return await self._conflict(session, lost)
        except SQLAlchemyError:
            logger.exception("Failed to save appointment for %s", result.slot)
            failed = BookingResult(success=False, slot=result.slot, message=prompts.PERSISTENCE_ERROR_REPLY)
            return self._reply(session, [prompts.PERSISTENCE_ERROR_REPLY], booking=failed)

        logger.info("Appointment %s confirmed: %s with %s", record.id, record.slot, record.worker)
        await self._notify_admin(details, result)
        await self.sessions.clear_session(user_key)

        summary = prompts.build_confirmation(
            self.flow.fields, session.fields, result.slot, result.worker, self.business
        )
        return TurnReply(user_key=user_key, messages=[summary], step=None, booking=result)

    async def _conflict(self, session: Session, result: BookingResult) -> TurnReply:
        open_slots = await self.engine.open_slots(self._clock())
        alternatives = [
            f"{s.time_label} {s.day}" for s in open_slots[: self.config.dialogue.alternatives_shown]
        ]
        return self._reply(
            session, [prompts.build_conflict_reply(result.message, alternatives)], booking=result
        )

    def _customer_details(self, session: Session) -> CustomerDetails:
        values = {
            name: session.fields[name]
            for name in CustomerDetails.model_fields
            if session.fields.get(name)
        }
        values.setdefault("areas", area_summary(session.fields))
        return CustomerDetails(**values)

    async def _notify_admin(self, details: CustomerDetails, result: BookingResult) -> None:
        payload = NotificationPayload(
            name=details.name,
            phone=details.phone,
            email=details.email,
            address=details.address,
            areas=details.areas,
            pet_issue=details.pet_issue,
            slot=result.slot,
            worker=result.worker,
        )
        try:
            outcome = await self.notifier.notify(payload)
        except Exception:
            logger.exception("Admin notification failed; booking is kept")
            return
        if outcome.skipped:
            logger.debug("Admin notification skipped")
        elif not outcome.success:
            logger.warning("Admin notification not delivered: %s", outcome.error)

    @staticmethod
    def _reply(session: Session, messages: list[str], booking: Optional[BookingResult] = None) -> TurnReply:
        return TurnReply(
            user_key=session.user_key, messages=messages, step=session.step, booking=booking
        )
