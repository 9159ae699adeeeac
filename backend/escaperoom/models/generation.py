"""
Generation diagnostics - What happened when a room was resolved
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class GenerationOutcome(str, Enum):
    """How a room definition was obtained"""

    CATALOG = "catalog"
    GENERATED = "generated"
    REPAIRED = "repaired"  # generated, with backfilled fields
    FALLBACK = "fallback"


class GenerationAttempt(BaseModel):
    """Record of one room resolution, kept for diagnostics"""

    room_id: int | str
    sequence_index: int | None = None
    total_in_sequence: int | None = None
    outcome: GenerationOutcome
    fallback_reason: str | None = None
    error: str | None = None
    system_role: str | None = None
    user_directive: str | None = None
    raw_response: str | None = None
    repair_notes: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0
    timestamp: datetime = Field(default_factory=datetime.now)
