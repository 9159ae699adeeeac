"""
Room Repair - Backfills incomplete generator output and synthesizes
fallback rooms when generation cannot produce a usable definition.

Repair is rule-based only:
- Missing optional top-level fields get defaults (hint, escaped, objects)
- Missing per-object puzzle fields get defaults instead of dropping the object
- Legacy shapes (objects keyed by id, ``escape``) are normalized here, so the
  engine only ever sees an ordered list of objects

A payload that still lacks a name, background, password or at least one
object after backfill is rejected and replaced by a fallback room.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ValidationError

from escaperoom.models.room import GameObject, RoomDefinition

logger = logging.getLogger(__name__)


DEFAULT_HINT = "Look for clues in the objects to find the password"
DEFAULT_PUZZLE = "Hidden puzzle within the description"
UNKNOWN_ANSWER = "unknown"

FALLBACK_PASSWORD = "fallback123"

REQUIRED_FIELDS = ("name", "background", "password", "objects")


class FallbackReason(str, Enum):
    """Why a room had to be synthesized instead of generated"""

    MISSING_CREDENTIAL = "missing_credential"
    GENERATION_FAILED = "generation_failed"
    MALFORMED_CONTENT = "malformed_content"


FALLBACK_REASON_TEXT = {
    FallbackReason.MISSING_CREDENTIAL: "No generation credential was available",
    FallbackReason.GENERATION_FAILED: "The generation call failed",
    FallbackReason.MALFORMED_CONTENT: "The generated content was malformed",
}


@dataclass
class RepairReport:
    """Result of repairing one generator payload"""

    payload: dict[str, Any] = field(default_factory=dict)
    backfilled: list[str] = field(default_factory=list)
    dropped_objects: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def is_usable(self) -> bool:
        """Payload can become a RoomDefinition"""
        return len(self.missing) == 0

    def notes(self) -> list[str]:
        """Flat list of what was changed, for diagnostics"""
        notes = [f"backfilled {name}" for name in self.backfilled]
        notes.extend(f"dropped object {name}" for name in self.dropped_objects)
        notes.extend(f"missing {name}" for name in self.missing)
        return notes


def normalize_objects(raw_objects: Any) -> list[Any]:
    """Collapse the object collection into an ordered list.

    Generators occasionally return objects as a mapping of id to object;
    the mapping order is kept and a missing name falls back to the key.
    """
    if raw_objects is None:
        return []
    if isinstance(raw_objects, dict):
        normalized = []
        for key, value in raw_objects.items():
            if isinstance(value, dict):
                value = dict(value)
                value.setdefault("name", str(key))
            normalized.append(value)
        return normalized
    if isinstance(raw_objects, list):
        return list(raw_objects)
    return []


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _repair_object(index: int, obj: Any, report: RepairReport) -> dict[str, Any] | None:
    """Backfill one object; returns None if it cannot be kept"""
    if not isinstance(obj, dict):
        report.dropped_objects.append(f"#{index} (not an object)")
        return None

    name = obj.get("name")
    if _is_blank(name):
        report.dropped_objects.append(f"#{index} (no name)")
        return None

    repaired = dict(obj)
    repaired["name"] = str(name).strip()

    if _is_blank(repaired.get("description")):
        repaired["description"] = ""
    if _is_blank(repaired.get("puzzle")):
        repaired["puzzle"] = DEFAULT_PUZZLE
        report.backfilled.append(f"objects[{index}].puzzle")
    if _is_blank(repaired.get("answer")):
        repaired["answer"] = UNKNOWN_ANSWER
        report.backfilled.append(f"objects[{index}].answer")
    else:
        repaired["answer"] = str(repaired["answer"])
    if not isinstance(repaired.get("unlocked"), bool):
        repaired["unlocked"] = False
        report.backfilled.append(f"objects[{index}].unlocked")

    details = repaired.get("details")
    if isinstance(details, str):
        details = [details]
    elif not isinstance(details, list):
        details = []
    repaired["details"] = [str(d) for d in details if not _is_blank(d)]

    return repaired


def repair_room_payload(data: Any) -> RepairReport:
    """Backfill defaults into a parsed generator payload.

    Args:
        data: The parsed JSON value returned by the generator

    Returns:
        RepairReport; ``is_usable`` is False when required fields are
        still missing after backfill
    """
    report = RepairReport()

    if not isinstance(data, dict):
        report.missing.extend(REQUIRED_FIELDS)
        return report

    payload = dict(data)

    # Top-level defaults
    if _is_blank(payload.get("hint")):
        payload["hint"] = DEFAULT_HINT
        report.backfilled.append("hint")
    if "escaped" not in payload:
        payload["escaped"] = bool(payload.pop("escape", False))
        report.backfilled.append("escaped")
    payload.pop("escape", None)
    if payload.get("objects") is None:
        payload["objects"] = []
        report.backfilled.append("objects")

    # Objects: single ordered list, unique names
    objects: list[dict[str, Any]] = []
    seen_names: set[str] = set()
    for index, obj in enumerate(normalize_objects(payload["objects"])):
        repaired = _repair_object(index, obj, report)
        if repaired is None:
            continue
        key = repaired["name"].lower()
        if key in seen_names:
            report.dropped_objects.append(f"{repaired['name']} (duplicate)")
            continue
        seen_names.add(key)
        objects.append(repaired)
    payload["objects"] = objects

    if isinstance(payload.get("password"), (int, float)) and not isinstance(
        payload.get("password"), bool
    ):
        payload["password"] = str(payload["password"])

    for name in ("name", "password"):
        if _is_blank(payload.get(name)) or not isinstance(payload.get(name), str):
            report.missing.append(name)
    # Background may be empty but must be present
    if not isinstance(payload.get("background"), str):
        report.missing.append("background")
    if not objects:
        report.missing.append("objects")

    report.payload = payload
    if report.backfilled:
        logger.warning(f"Backfilled generator fields: {', '.join(report.backfilled)}")
    if report.dropped_objects:
        logger.warning(f"Dropped generated objects: {', '.join(report.dropped_objects)}")
    return report


def build_room_from_payload(
    report: RepairReport,
    identity: int | str,
    sequence_index: int | None,
    total_in_sequence: int | None,
) -> RoomDefinition | None:
    """Turn a usable repair report into a RoomDefinition.

    Returns None if the payload is unusable or fails model validation.
    """
    if not report.is_usable:
        return None

    payload = report.payload
    try:
        return RoomDefinition(
            identity=identity,
            sequence_index=sequence_index,
            total_in_sequence=total_in_sequence,
            name=payload["name"].strip(),
            background=payload["background"],
            password=payload["password"].strip(),
            hint=payload["hint"],
            objects=[GameObject(**obj) for obj in payload["objects"]],
            escaped=bool(payload.get("escaped", False)),
        )
    except (ValidationError, TypeError) as e:
        logger.warning(f"Repaired payload failed validation for room {identity}: {e}")
        report.missing.append("valid structure")
        return None


def build_fallback_room(
    identity: int | str,
    sequence_index: int | None,
    total_in_sequence: int | None,
    reason: FallbackReason,
    detail: str | None = None,
) -> RoomDefinition:
    """Synthesize a small but fully playable room.

    The password is always FALLBACK_PASSWORD and the single object's
    details give it away, so a session can always be completed.
    """
    reason_text = FALLBACK_REASON_TEXT[reason]
    if detail:
        reason_text = f"{reason_text}: {detail}"

    logger.warning(f"Using fallback room for {identity} ({reason.value})")

    label = sequence_index if sequence_index is not None else identity
    return RoomDefinition(
        identity=identity,
        sequence_index=sequence_index,
        total_in_sequence=total_in_sequence,
        name=f"Fallback Room {label}",
        background=(
            f"This is a fallback room. Reason: {reason_text}. "
            f"The room id is {identity}."
        ),
        password=FALLBACK_PASSWORD,
        hint="The note on the floor says everything you need.",
        objects=[
            GameObject(
                name="Fallback Note",
                description="A note left behind when the room could not be built.",
                puzzle="fallback puzzle",
                answer="fallback answer",
                details=[
                    f"An error occurred: {reason_text}",
                    f'The password is "{FALLBACK_PASSWORD}"',
                ],
            )
        ],
    )
