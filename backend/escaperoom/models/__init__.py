"""Pydantic models for the escape room engine"""

from escaperoom.models.room import GameObject, RoomDefinition, GenerationPrompt
from escaperoom.models.generation import GenerationAttempt, GenerationOutcome
from escaperoom.models.command import (
    CommandResult,
    GameMode,
    HintPayload,
    NextRoomInfo,
    ParsedCommand,
    RoomProgress,
    RoomSummary,
    SessionStatus,
    Verb,
)

__all__ = [
    # Room models
    "GameObject",
    "RoomDefinition",
    "GenerationPrompt",
    # Generation diagnostics
    "GenerationAttempt",
    "GenerationOutcome",
    # Command models
    "CommandResult",
    "GameMode",
    "HintPayload",
    "NextRoomInfo",
    "ParsedCommand",
    "RoomProgress",
    "RoomSummary",
    "SessionStatus",
    "Verb",
]
