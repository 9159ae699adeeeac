"""
Command models - Parsed player commands and the results returned for them

Every result carries a human-readable ``message`` plus structured fields,
so a transport or terminal front end can render any command without
command-specific formatting logic.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from escaperoom.models.room import GameObject


class Verb(str, Enum):
    """Command vocabulary understood by the engine"""

    NEWGAME = "newgame"
    LOOK = "look"
    INSPECT = "inspect"
    HINT = "hint"
    GUESS = "guess"
    STATUS = "status"
    HELP = "help"
    UNKNOWN = "unknown"


class GameMode(str, Enum):
    """How the rooms of a session are obtained.

    Attributes:
        DEFAULT: Fixed catalog rooms, played in catalog order
        SINGLE: One generated room
        MULTI: A sequence of generated rooms
    """

    DEFAULT = "default"
    SINGLE = "single"
    MULTI = "multi"


class ParsedCommand(BaseModel):
    """A raw input line split into verb and verbatim argument"""

    verb: Verb
    argument: str = ""
    raw: str = ""


class RoomSummary(BaseModel):
    """Identity of a room as echoed in results"""

    id: int | str
    name: str
    sequence_index: int | None = None
    total_in_sequence: int | None = None


class NextRoomInfo(BaseModel):
    """The room a session advanced into"""

    id: int | str
    sequence_index: int
    name: str


class HintPayload(BaseModel):
    """A single clue and the object it came from"""

    source: str
    content: str


class RoomProgress(BaseModel):
    """One room's place in a session. ``name`` is None until resolved."""

    id: int | str
    sequence_index: int
    name: str | None = None
    unlocked: bool = False
    current: bool = False

    @property
    def label(self) -> str:
        if self.current:
            return "CURRENT"
        return "UNLOCKED" if self.unlocked else "LOCKED"


class SessionStatus(BaseModel):
    """Progress summary for a session.

    ``progress_percent`` counts rooms entered, so it stays below 100 while
    the last room is being played; ``completed`` reports the finished game.
    """

    session_id: str | None = None
    mode: GameMode | None = None
    current_room: int  # 1-based
    current_room_name: str | None = None
    total_rooms: int
    progress_percent: int
    completed: bool = False
    rooms: list[RoomProgress] = Field(default_factory=list)


class CommandResult(BaseModel):
    """Outcome of one command"""

    message: str
    command: Verb = Verb.UNKNOWN
    unlocked: bool = False
    game_completed: bool = False
    escaped: bool = False  # transient echo, not session state
    found: bool | None = None  # set by inspect
    room: RoomSummary | None = None
    objects: list[str] | None = None
    object: GameObject | None = None
    hint: HintPayload | None = None
    next_room: NextRoomInfo | None = None
    solved_object: str | None = None
    status: SessionStatus | None = None
    session_id: str | None = None
    commands: dict[str, str] = Field(default_factory=dict)  # filled for help/unknown
