"""Console line parsing into structured player-presence events."""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class PlayerJoined:
    name: str


@dataclass(frozen=True)
class PlayerLeft:
    name: str


@dataclass(frozen=True)
class RosterReplaced:
    names: tuple


@dataclass(frozen=True)
class LogPatternSet:
    """Regex rules for one server distribution's console wording.

    Each pattern exposes its payload as the first group: the player name for
    ``join``/``leave`` and the raw comma-separated name list for ``roster``.
    """

    join: re.Pattern
    leave: re.Pattern
    roster: re.Pattern


VANILLA_PATTERNS = LogPatternSet(
    join=re.compile(r":\s+(\w+) joined the game"),
    leave=re.compile(r":\s+(\w+) left the game"),
    roster=re.compile(r"There are \d+ of a max of \d+ players online:(.*)"),
)


def normalize_line(raw):
    """Drop carriage returns and surrounding whitespace from one raw line."""
    return str(raw or "").replace("\r", "").strip()


def split_roster_names(raw_names):
    """Split a roster payload into trimmed, non-blank player names."""
    return tuple(part.strip() for part in (raw_names or "").split(",") if part.strip())


def parse_line(text, patterns=VANILLA_PATTERNS):
    """Return the first matching presence event for ``text``, or None."""
    if not text:
        return None
    match = patterns.join.search(text)
    if match:
        return PlayerJoined(match.group(1))
    match = patterns.leave.search(text)
    if match:
        return PlayerLeft(match.group(1))
    match = patterns.roster.search(text)
    if match:
        return RosterReplaced(split_roster_names(match.group(1)))
    return None
