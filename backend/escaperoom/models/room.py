"""
Room models - Pydantic models for escape rooms and their puzzle objects
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class GameObject(BaseModel):
    """An inspectable object inside a room.

    The name is the lookup key for inspect and object answers, compared
    case-insensitively. Details are the clue strings hints are drawn from.
    """

    name: str
    description: str = ""
    puzzle: str | None = None
    answer: str | None = None
    unlocked: bool = False
    details: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("object name must not be empty")
        return value

    @field_validator("details", mode="before")
    @classmethod
    def coerce_details(cls, value: object) -> object:
        """Accept a single detail string as well as a list."""
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value

    def matches(self, name: str) -> bool:
        """Case-insensitive name comparison"""
        return self.name.strip().lower() == name.strip().lower()


class RoomDefinition(BaseModel):
    """Complete description of one room.

    Once built the definition is only mutated through the ``unlocked``
    flags of its objects. ``escaped`` is echoed in responses and is not
    the authoritative progress state, which lives in the session.
    """

    identity: int | str
    sequence_index: int | None = None  # 1-based position in a game
    total_in_sequence: int | None = None
    name: str
    background: str = ""
    password: str
    hint: str | None = None
    objects: list[GameObject] = Field(default_factory=list)
    escaped: bool = False

    @field_validator("name", "password")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value or not str(value).strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("password", mode="before")
    @classmethod
    def coerce_password(cls, value: object) -> object:
        # Generators sometimes answer a numeric code as a JSON number
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def object_names(self) -> list[str]:
        """Object names in display order"""
        return [obj.name for obj in self.objects]

    def find_object(self, name: str) -> GameObject | None:
        """Find an object by name, ignoring case"""
        for obj in self.objects:
            if obj.matches(name):
                return obj
        return None

    def matches_password(self, guess: str) -> bool:
        """Case-insensitive password comparison"""
        return guess.strip().lower() == self.password.strip().lower()

    def is_last_in_sequence(self) -> bool:
        """True when this room closes its game; standalone rooms never do"""
        if self.sequence_index is None or self.total_in_sequence is None:
            return False
        return self.sequence_index >= self.total_in_sequence

    def position_label(self) -> str:
        """Human-readable position such as 'Room 2 of 3', or '' if standalone"""
        if self.sequence_index is None:
            return ""
        if self.total_in_sequence is None:
            return f"Room {self.sequence_index}"
        return f"Room {self.sequence_index} of {self.total_in_sequence}"


class GenerationPrompt(BaseModel):
    """Request handed to a content generator"""

    system_role: str
    user_directive: str
