"""
chat.py — terminal front-end for a running Casus server.

Usage:
    python scripts/chat.py                                   # http://127.0.0.1:8000, mode MJ
    python scripts/chat.py --mode joueur --univers "Cthulhu années 20"
    python scripts/chat.py --url http://localhost:8787 --style "réponses courtes"

In the prompt: /reset clears the conversation, /quit (or Ctrl-D) exits.
/roll and /help are answered by the server like any other message.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from casus.schemas.chat import CasusProfile
from casus.services.chat_client import ChatSession
from casus.utils.prompts import GREETING

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


class TerminalView:
    """Prints a streamed reply by appending only the new tail of the text."""

    def __init__(self) -> None:
        self._shown = 0

    def start(self) -> None:
        self._shown = 0
        sys.stdout.write("casus> ")
        sys.stdout.flush()

    def render(self, text: str) -> None:
        sys.stdout.write(text[self._shown:])
        sys.stdout.flush()
        self._shown = len(text)

    def notice(self, text: str) -> None:
        if self._shown:
            sys.stdout.write("\n")
        sys.stdout.write(text)

    def finish(self) -> None:
        sys.stdout.write("\n\n")
        sys.stdout.flush()


async def run_chat(url: str, profile: CasusProfile) -> None:
    """Read-eval-print loop over a single ChatSession."""
    view = TerminalView()
    async with ChatSession(url, profile=profile) as session:
        print(GREETING, end="\n\n")
        while True:
            try:
                line = await asyncio.to_thread(input, "vous> ")
            except EOFError:
                print()
                break

            command = line.strip().lower()
            if not command:
                continue
            if command == "/quit":
                break
            if command == "/reset":
                session.reset()
                print(GREETING, end="\n\n")
                continue

            view.start()
            turn = await session.send(line, on_text=view.render)
            if turn is not None and not turn.ok:
                view.notice(turn.text)
            view.finish()


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Chat with Casus from the terminal.")
    parser.add_argument("--url", default="http://127.0.0.1:8000", help="Base URL of the Casus server")
    parser.add_argument("--mode", choices=["mj", "joueur"], default="mj", help="Game mode sent with each turn")
    parser.add_argument("--univers", default=None, help="Universe / tone of the game")
    parser.add_argument("--style", default=None, help="Style constraints for the answers")
    args = parser.parse_args()

    profile = CasusProfile(mode=args.mode, univers=args.univers, style=args.style)
    try:
        asyncio.run(run_chat(args.url, profile))
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
