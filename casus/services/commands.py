"""
Local slash-commands answered without contacting the model.

  /help                      — list the commands
  /roll NdM±K [adv|dis]      — roll dice with a cryptographically strong source

Bad input never raises: every rejection is a French message for the player.
"""

from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass, field
from typing import Callable, Optional

from casus.schemas.chat import ChatMessage
from casus.utils.prompts import (
    HELP_TEXT,
    ROLL_ADV_UNSUPPORTED,
    ROLL_BAD_FORMAT,
    ROLL_COUNT_RANGE,
    ROLL_FACES_RANGE,
    ROLL_INVALID,
    ROLL_USAGE,
)

logger = logging.getLogger(__name__)

RandBits = Callable[[int], int]

MIN_DICE, MAX_DICE = 1, 50
MIN_FACES, MAX_FACES = 2, 1000

_UINT32_SPACE = 1 << 32

# NdM(+/-K) where N may be omitted (=> 1)
_ROLL_EXPR = re.compile(r"^(\d*)d(\d+)([+-]\d+)?$", re.IGNORECASE | re.ASCII)
_ROLL_PREFIX = re.compile(r"^/roll", re.IGNORECASE)
_ADV = re.compile(r"\badv\b", re.ASCII)
_DIS = re.compile(r"\bdis\b", re.ASCII)


# ── Random source ────────────────────────────────────────────────────────────

def rand_int_inclusive(lo: int, hi: int, randbits: RandBits = secrets.randbits) -> int:
    """
    Uniform integer in [lo, hi] from 32-bit draws.

    Draws at or above the largest multiple of the span that fits in 2**32
    are rejected, so `x % span` carries no modulo bias.
    """
    if hi < lo:
        raise ValueError("Invalid random range")
    span = hi - lo + 1
    limit = _UINT32_SPACE - (_UINT32_SPACE % span)
    while True:
        x = randbits(32)
        if x < limit:
            return lo + (x % span)


# ── Dice ─────────────────────────────────────────────────────────────────────

def _format_modifier(modifier: int) -> str:
    if modifier == 0:
        return ""
    return f"+{modifier}" if modifier > 0 else f"{modifier}"


@dataclass
class DiceRoll:
    """Outcome of a single /roll — computed once, never stored."""

    count: int
    faces: int
    modifier: int = 0
    rolls: list[int] = field(default_factory=list)
    advantage: Optional[str] = None     # "adv" | "dis"
    kept: Optional[int] = None

    @property
    def total(self) -> int:
        base = self.kept if self.kept is not None else sum(self.rolls)
        return base + self.modifier

    def format(self) -> str:
        """Three lines: header echoing the command, the rolls, the total."""
        mod = _format_modifier(self.modifier)
        suffix = f" ({mod})" if self.modifier != 0 else ""
        if self.advantage:
            header = f"🎲 /roll 1d20 {self.advantage}{mod}"
            detail = f"Jets: {', '.join(map(str, self.rolls))} → gardé: {self.kept}{suffix}"
        else:
            header = f"🎲 /roll {self.count}d{self.faces}{mod}"
            detail = f"Jets: {', '.join(map(str, self.rolls))}{suffix}"
        return "\n".join([header, detail, f"Total: {self.total}"])


def roll_dice(
    count: int,
    faces: int,
    modifier: int = 0,
    advantage: Optional[str] = None,
    randbits: RandBits = secrets.randbits,
) -> DiceRoll:
    """
    Roll `count` dice of `faces` sides, or two d20 for advantage/disadvantage.
    Bounds are the caller's job — see roll_dice_command.
    """
    if advantage:
        a = rand_int_inclusive(1, 20, randbits)
        b = rand_int_inclusive(1, 20, randbits)
        kept = max(a, b) if advantage == "adv" else min(a, b)
        return DiceRoll(
            count=1, faces=20, modifier=modifier, rolls=[a, b], advantage=advantage, kept=kept
        )

    rolls = [rand_int_inclusive(1, faces, randbits) for _ in range(count)]
    return DiceRoll(count=count, faces=faces, modifier=modifier, rolls=rolls)


def _is_finite(*values: int) -> bool:
    try:
        for value in values:
            float(value)
    except OverflowError:
        return False
    return True


def roll_dice_command(text: str, randbits: RandBits = secrets.randbits) -> str:
    """Parse and run a `/roll ...` line; returns the reply or a correction."""
    rest = _ROLL_PREFIX.sub("", text.strip(), count=1).strip()
    if not rest:
        return ROLL_USAGE

    tokens = rest.split()
    expr = tokens[0]
    mode = " ".join(tokens[1:]).lower()

    match = _ROLL_EXPR.match(expr)
    if not match:
        return ROLL_BAD_FORMAT

    try:
        count = int(match.group(1)) if match.group(1) else 1
        faces = int(match.group(2))
        modifier = int(match.group(3)) if match.group(3) else 0
    except ValueError:
        # digit strings past the interpreter's int conversion limit
        return ROLL_INVALID

    if not _is_finite(count, faces, modifier):
        return ROLL_INVALID
    if not MIN_DICE <= count <= MAX_DICE:
        return ROLL_COUNT_RANGE
    if not MIN_FACES <= faces <= MAX_FACES:
        return ROLL_FACES_RANGE

    want_adv = bool(_ADV.search(mode))
    want_dis = bool(_DIS.search(mode))
    if (want_adv or want_dis) and not (count == 1 and faces == 20):
        return ROLL_ADV_UNSUPPORTED

    advantage = "adv" if want_adv else "dis" if want_dis else None
    result = roll_dice(count, faces, modifier, advantage=advantage, randbits=randbits)
    logger.debug("Rolled %s → total %d", expr, result.total)
    return result.format()


# ── Dispatch ─────────────────────────────────────────────────────────────────

def handle_command(raw: str, randbits: RandBits = secrets.randbits) -> Optional[str]:
    """Return the local reply for a slash-command, or None when `raw` is not one."""
    text = raw.strip()
    lowered = text.lower()
    if lowered == "/help":
        return HELP_TEXT
    if lowered.startswith("/roll"):
        return roll_dice_command(text, randbits)
    return None


def reply_to_last_user_message(
    messages: list[ChatMessage], randbits: RandBits = secrets.randbits
) -> Optional[str]:
    """Run the latest user message through handle_command, if there is one."""
    for message in reversed(messages):
        if message.role == "user":
            return handle_command(message.content, randbits)
    return None
