"""
Rule-based command parser.

Splits a raw input line into a verb from the fixed vocabulary and a
verbatim argument. No LLM is involved; unrecognized verbs parse to
Verb.UNKNOWN so callers can answer with the list of supported commands.
"""

from __future__ import annotations

import re

from escaperoom.models.command import ParsedCommand, Verb


# One usage line per command, shown by help and for unknown input
COMMAND_USAGE: dict[str, str] = {
    "newgame": "newgame [default|single|multi] [rooms] - start a new game",
    "look": "look - look around the current room",
    "inspect": "inspect <object> - examine an object for details",
    "hint": "hint - get a random clue",
    "guess": "guess <password> - try to unlock the door",
    "status": "status - show your progress",
    "help": "help - show this list",
}

# Commands a room itself answers
ROOM_VERBS = frozenset({Verb.LOOK, Verb.INSPECT, Verb.HINT, Verb.GUESS})


class CommandParser:
    """Parse player input into a ParsedCommand.

    A leading slash is optional and the verb is matched case-insensitively.
    Everything after the verb and one separating whitespace character is
    the argument, kept verbatim so multi-word passwords and object names
    survive.

    Example:
        >>> parser = CommandParser()
        >>> cmd = parser.parse("/INSPECT Radio Transceiver")
        >>> cmd.verb == Verb.INSPECT
        True
        >>> cmd.argument
        'Radio Transceiver'
    """

    COMMAND_PATTERN = re.compile(r"^/?(\S+)(?:\s(.*))?$", re.DOTALL)

    VERB_ALIASES: dict[str, Verb] = {
        "newgame": Verb.NEWGAME,
        "look": Verb.LOOK,
        "inspect": Verb.INSPECT,
        "examine": Verb.INSPECT,
        "hint": Verb.HINT,
        "guess": Verb.GUESS,
        "password": Verb.GUESS,
        "status": Verb.STATUS,
        "help": Verb.HELP,
    }

    def parse(self, raw_input: str) -> ParsedCommand:
        """Parse one input line.

        Args:
            raw_input: The raw player input string

        Returns:
            ParsedCommand; verb is Verb.UNKNOWN for unrecognized input
        """
        line = raw_input.strip()
        match = self.COMMAND_PATTERN.match(line)
        if not match:
            return ParsedCommand(verb=Verb.UNKNOWN, raw=raw_input)

        verb = self.VERB_ALIASES.get(match.group(1).lower(), Verb.UNKNOWN)
        argument = match.group(2) or ""
        return ParsedCommand(verb=verb, argument=argument, raw=raw_input)


_parser = CommandParser()


def parse_command(raw_input: str) -> ParsedCommand:
    """Parse with the shared stateless parser"""
    return _parser.parse(raw_input)
