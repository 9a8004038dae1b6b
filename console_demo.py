"""
Offline console demo: chat with the booking bot in the terminal.

Runs the real dialogue controller, booking engine and SQLite storage. Admin
notifications are skipped unless Twilio credentials are configured. By
default the demo uses a throwaway database so every run starts empty.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario conflict
"""

import argparse
import asyncio
import dataclasses
import tempfile
from pathlib import Path
from typing import Optional

from booking_bot.bot import BookingBot
from booking_bot.config import StorageConfig, settings

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEFAULT_USER = "whatsapp:+15550100"
OTHER_USER = "whatsapp:+15550199"


class ConsoleSession:
    """Drives conversations against a local BookingBot."""

    # Pre-scripted scenarios for --scenario flag. "{first_slot}" is replaced
    # with the first open slot when the scenario starts.
    SCENARIOS: dict[str, list[tuple[str, str]]] = {
        "booking": [
            (DEFAULT_USER, "hi"),
            (DEFAULT_USER, "Jordan Lee"),
            (DEFAULT_USER, "(555) 010-0100"),
            (DEFAULT_USER, "arlington"),
            (DEFAULT_USER, "Jordan@Example.com"),
            (DEFAULT_USER, "3"),
            (DEFAULT_USER, "1"),
            (DEFAULT_USER, "1"),
            (DEFAULT_USER, "no"),
            (DEFAULT_USER, "1"),
            (DEFAULT_USER, "1"),
        ],
        "conflict": [
            (DEFAULT_USER, "hi"),
            (DEFAULT_USER, "Jordan Lee"),
            (DEFAULT_USER, "555-010-0100"),
            (DEFAULT_USER, "fairfax"),
            (DEFAULT_USER, "jordan@example.com"),
            (DEFAULT_USER, "2"),
            (DEFAULT_USER, "1"),
            (DEFAULT_USER, "0"),
            (DEFAULT_USER, "yes"),
            (DEFAULT_USER, "Book {first_slot}"),
            (OTHER_USER, "hello"),
            (OTHER_USER, "Sam Rivera"),
            (OTHER_USER, "555-010-0199"),
            (OTHER_USER, "alexandria"),
            (OTHER_USER, "sam@example.com"),
            (OTHER_USER, "4"),
            (OTHER_USER, "2"),
            (OTHER_USER, "1"),
            (OTHER_USER, "no"),
            (OTHER_USER, "Book {first_slot}"),
        ],
    }

    MAX_INPUT_LENGTH = 500

    def __init__(self, bot: BookingBot) -> None:
        self.bot = bot

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[Bot]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str, extra: Optional[str] = None) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  BOOKING BOT - {title}{RESET}")
        print(f"{BOLD}  Business: {self.bot.config.business.name}{RESET}")
        if extra:
            print(f"{BOLD}  {extra}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    async def _turn(self, user: str, text: str) -> None:
        reply = await self.bot.handle_message(user, text)
        for message in reply.messages:
            self.agent_say(message)
        step = reply.step.value if reply.step else "cleared"
        self.system_log(f"Step: {step}")
        if reply.booking and reply.booking.success:
            self.system_log(f"Booked {reply.booking.slot} with {reply.booking.worker}")
        elif reply.booking and reply.booking.conflict:
            self.system_log(f"{YELLOW}Conflict on {reply.booking.slot}{RESET}")

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        open_slots = await self.bot.engine.open_slots()
        first_slot = f"{open_slots[0].time_label} {open_slots[0].day}" if open_slots else ""

        for user, text in steps:
            text = text.format(first_slot=first_slot)
            print(f"\n{BLUE}[{user}] {RESET}{text}")
            await self._turn(user, text)

        appointments = await self.bot.appointments.list_all()
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        for record in appointments:
            print(f"{DIM}  {record.id}: {record.slot} with {record.worker} ({record.name}){RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def run(self, user: str = DEFAULT_USER) -> None:
        self._banner("Console Demo", "Type 'quit' to exit")
        loop = asyncio.get_running_loop()
        while True:
            user_input = (await loop.run_in_executor(None, input, f"\n{BLUE}[You] {RESET}")).strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.agent_say("That was quite long. Could you keep it brief for me?")
                continue
            await self._turn(user, user_input)


async def _main(scenario: Optional[str], database: Optional[str]) -> None:
    with tempfile.TemporaryDirectory() as scratch:
        path = database or str(Path(scratch) / "console.db")
        config = dataclasses.replace(
            settings, storage=StorageConfig(database_url=f"sqlite+aiosqlite:///{path}")
        )
        bot = BookingBot(config)
        await bot.start()
        try:
            session = ConsoleSession(bot)
            if scenario:
                await session.run_scenario(scenario)
            else:
                await session.run()
        finally:
            await bot.close()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument(
        "--database",
        default=None,
        help="SQLite file to use instead of a throwaway one",
    )
    args = parser.parse_args(argv)
    asyncio.run(_main(args.scenario, args.database))


if __name__ == "__main__":
    main()
