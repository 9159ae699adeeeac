"""
Room engine - Resolves one room's definition and answers commands against it.

Resolution state machine:
    UNRESOLVED --(first command, credential)--> RESOLVING --> RESOLVED
    UNRESOLVED --(catalog room, or no credential)-----------> RESOLVED

RESOLVED is terminal. Generation is attempted at most once per engine:
concurrent callers share the in-flight attempt, and every failure ends in
a fallback room, so a resolved engine always has a playable definition.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from enum import Enum
from typing import TYPE_CHECKING

from escaperoom.engine.parser import COMMAND_USAGE, ROOM_VERBS, parse_command
from escaperoom.engine.repair import (
    UNKNOWN_ANSWER,
    FallbackReason,
    build_fallback_room,
    build_room_from_payload,
    repair_room_payload,
)
from escaperoom.llm.client import get_generation_timeout, parse_json_response
from escaperoom.llm.room_generator import build_generation_prompt
from escaperoom.llm.session_logger import log_generation_attempt
from escaperoom.models.command import (
    CommandResult,
    HintPayload,
    ParsedCommand,
    RoomSummary,
    Verb,
)
from escaperoom.models.generation import GenerationAttempt, GenerationOutcome
from escaperoom.models.room import GameObject, RoomDefinition

if TYPE_CHECKING:
    from escaperoom.engine.protocols import ContentGenerator, RoomCatalogLookup
    from escaperoom.models.room import GenerationPrompt

logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    """Where an engine is in obtaining its room definition"""

    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


class RoomEngine:
    """Owns exactly one room: its definition and its command handling.

    Catalog rooms are loaded synchronously at construction. Generated
    rooms stay UNRESOLVED until the first command that needs them.

    Example:
        >>> engine = RoomEngine(1, 1, 3, catalog=default_catalog())
        >>> result = await engine.process_command("guess 007")
        >>> result.unlocked
        True
    """

    def __init__(
        self,
        room_id: int | str,
        sequence_index: int | None = None,
        total_in_sequence: int | None = None,
        *,
        catalog: "RoomCatalogLookup | None" = None,
        generator: "ContentGenerator | None" = None,
        predecessor: "RoomEngine | None" = None,
        session_id: str | None = None,
        timeout: float | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize the engine.

        Args:
            room_id: Catalog id, or an opaque id for a generated room
            sequence_index: 1-based position in the game (None if standalone)
            total_in_sequence: Number of rooms in the game
            catalog: Source of pre-built rooms
            generator: Content generator for rooms not in the catalog
            predecessor: Engine of the previous room, for continuation prompts
            session_id: Owning session, used for generation logs
            timeout: Seconds before a generation call counts as failed
            rng: Random source for hints

        Raises:
            ValueError: If the room is neither in the catalog nor generatable
        """
        self.room_id = room_id
        self.sequence_index = sequence_index
        self.total_in_sequence = total_in_sequence
        self.generator = generator
        self.predecessor = predecessor
        self.session_id = session_id
        self.timeout = timeout if timeout is not None else get_generation_timeout()
        self._rng = rng or random.Random()

        self._definition: RoomDefinition | None = None
        self._state = ResolutionState.UNRESOLVED
        self._resolution: asyncio.Future[RoomDefinition] | None = None
        self.fallback_reason: FallbackReason | None = None
        self.last_attempt: GenerationAttempt | None = None

        self.is_catalog = catalog is not None and room_id in catalog
        if self.is_catalog:
            self._load_from_catalog(catalog)
        elif generator is None:
            raise ValueError(
                f"Room {room_id} is not in the catalog and no generator was given"
            )
        else:
            logger.debug(f"Room {room_id} will be generated on first use")

    # =========================================================================
    # Resolution
    # =========================================================================

    @property
    def state(self) -> ResolutionState:
        return self._state

    @property
    def definition(self) -> RoomDefinition | None:
        """The resolved definition, or None before resolution"""
        return self._definition

    @property
    def is_resolved(self) -> bool:
        return self._state == ResolutionState.RESOLVED

    def _load_from_catalog(self, catalog: "RoomCatalogLookup") -> None:
        room = catalog.lookup(self.room_id)
        if room is None:
            raise ValueError(f"Catalog has no room {self.room_id}")

        # The session decides the position; the catalog copy is private
        room.sequence_index = self.sequence_index
        room.total_in_sequence = self.total_in_sequence
        self._set_definition(room)
        self.last_attempt = GenerationAttempt(
            room_id=self.room_id,
            sequence_index=self.sequence_index,
            total_in_sequence=self.total_in_sequence,
            outcome=GenerationOutcome.CATALOG,
        )
        logger.info(f"Loaded catalog room {self.room_id}: {room.name}")

    def _set_definition(self, room: RoomDefinition) -> None:
        self._definition = room
        self._state = ResolutionState.RESOLVED

    async def ensure_definition(self, credential: str | None = None) -> RoomDefinition:
        """Return the room definition, resolving it on first use.

        Concurrent callers share a single in-flight generation and all
        receive its result. Never raises for content problems: failures
        end in a fallback room.

        Args:
            credential: Secret for the content generator

        Returns:
            The resolved RoomDefinition
        """
        if self._definition is not None:
            return self._definition

        if self._resolution is not None and self._resolution.cancelled():
            # An abandoned attempt never produced a room; allow a new one
            self._resolution = None
            self._state = ResolutionState.UNRESOLVED

        if self._resolution is None:
            if not credential:
                logger.warning(f"No credential to generate room {self.room_id}")
                self._use_fallback(
                    FallbackReason.MISSING_CREDENTIAL,
                    attempt=self._new_attempt(GenerationOutcome.FALLBACK),
                )
                return self._definition

            self._state = ResolutionState.RESOLVING
            self._resolution = asyncio.ensure_future(self._resolve(credential))

        # Shield so one cancelled waiter does not cancel the shared attempt
        return await asyncio.shield(self._resolution)

    def _new_attempt(
        self, outcome: GenerationOutcome, prompt: "GenerationPrompt | None" = None
    ) -> GenerationAttempt:
        return GenerationAttempt(
            room_id=self.room_id,
            sequence_index=self.sequence_index,
            total_in_sequence=self.total_in_sequence,
            outcome=outcome,
            system_role=prompt.system_role if prompt else None,
            user_directive=prompt.user_directive if prompt else None,
        )

    def _use_fallback(
        self,
        reason: FallbackReason,
        attempt: GenerationAttempt,
        detail: str | None = None,
    ) -> None:
        room = build_fallback_room(
            self.room_id,
            self.sequence_index,
            self.total_in_sequence,
            reason,
            detail=detail,
        )
        self.fallback_reason = reason
        attempt.outcome = GenerationOutcome.FALLBACK
        attempt.fallback_reason = reason.value
        attempt.error = detail
        self._record(attempt)
        self._set_definition(room)

    def _record(self, attempt: GenerationAttempt) -> None:
        self.last_attempt = attempt
        log_generation_attempt(self.session_id, attempt)

    def _previous_definition(self) -> RoomDefinition | None:
        if self.predecessor is None:
            return None
        return self.predecessor.definition

    async def _resolve(self, credential: str) -> RoomDefinition:
        """Run one generation attempt and settle on a definition."""
        started = time.monotonic()
        attempt = self._new_attempt(GenerationOutcome.GENERATED)

        position = (
            f"{self.sequence_index}/{self.total_in_sequence}"
            if self.sequence_index is not None
            else "standalone"
        )
        logger.info(f"Generating room {self.room_id} ({position})")

        try:
            prompt = build_generation_prompt(
                self.sequence_index,
                self.total_in_sequence,
                previous=self._previous_definition(),
            )
            attempt.system_role = prompt.system_role
            attempt.user_directive = prompt.user_directive
            raw = await asyncio.wait_for(
                self.generator.generate(prompt, credential), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Generation for room {self.room_id} timed out after {self.timeout}s"
            )
            attempt.duration_seconds = time.monotonic() - started
            self._use_fallback(
                FallbackReason.GENERATION_FAILED,
                attempt,
                detail=f"timed out after {self.timeout}s",
            )
            return self._definition
        except Exception as e:
            logger.error(
                f"Generation call failed for room {self.room_id}: {type(e).__name__}: {e}"
            )
            attempt.duration_seconds = time.monotonic() - started
            self._use_fallback(
                FallbackReason.GENERATION_FAILED,
                attempt,
                detail=f"{type(e).__name__}: {e}",
            )
            return self._definition

        attempt.duration_seconds = time.monotonic() - started

        if raw is not None and not isinstance(raw, str):
            attempt.raw_response = repr(raw)
            logger.warning(
                f"Generator returned {type(raw).__name__} for room {self.room_id}, expected text"
            )
            self._use_fallback(
                FallbackReason.MALFORMED_CONTENT,
                attempt,
                detail=f"content of type {type(raw).__name__}",
            )
            return self._definition
        attempt.raw_response = raw

        try:
            data = parse_json_response(raw)
            report = repair_room_payload(data)
            room = build_room_from_payload(
                report, self.room_id, self.sequence_index, self.total_in_sequence
            )
        except ValueError as e:
            logger.warning(f"Unparsable content for room {self.room_id}: {e}")
            self._use_fallback(FallbackReason.MALFORMED_CONTENT, attempt, detail=str(e))
            return self._definition
        except Exception as e:
            logger.error(
                f"Could not build room {self.room_id} from content: {type(e).__name__}: {e}"
            )
            self._use_fallback(
                FallbackReason.MALFORMED_CONTENT,
                attempt,
                detail=f"{type(e).__name__}: {e}",
            )
            return self._definition

        attempt.repair_notes = report.notes()
        if room is None:
            logger.warning(
                f"Generated room {self.room_id} unusable, missing: {', '.join(report.missing)}"
            )
            self._use_fallback(
                FallbackReason.MALFORMED_CONTENT,
                attempt,
                detail=f"missing {', '.join(report.missing)}",
            )
            return self._definition

        if report.backfilled or report.dropped_objects:
            attempt.outcome = GenerationOutcome.REPAIRED
        self._record(attempt)
        self._set_definition(room)
        logger.info(
            f"Room {self.room_id} generated: {room.name} "
            f"({len(room.objects)} objects, {attempt.outcome.value})"
        )
        return room

    # =========================================================================
    # Commands
    # =========================================================================

    def summary(self) -> RoomSummary | None:
        """Identity of the resolved room"""
        if self._definition is None:
            return None
        return RoomSummary(
            id=self.room_id,
            name=self._definition.name,
            sequence_index=self.sequence_index,
            total_in_sequence=self.total_in_sequence,
        )

    async def process_command(
        self, raw_input: str, credential: str | None = None
    ) -> CommandResult:
        """Process a look, inspect, hint or guess command.

        The definition is resolved first. Wrong guesses, missing objects
        and unknown commands are ordinary results, never exceptions.
        """
        room = await self.ensure_definition(credential)
        command = parse_command(raw_input)

        if command.verb not in ROOM_VERBS:
            return self._unknown(command)
        if command.verb == Verb.LOOK:
            return self._look(room)
        if command.verb == Verb.INSPECT:
            return self._inspect(room, command.argument)
        if command.verb == Verb.HINT:
            return self._hint(room)
        return self._guess(room, command.argument)

    def _look(self, room: RoomDefinition) -> CommandResult:
        position = room.position_label()
        header = f"You are in {room.name}" + (f" ({position})" if position else "") + "."

        names = room.object_names()
        if names:
            seen = "Looking around, you see:\n- " + "\n- ".join(names)
        else:
            seen = "Looking around, you see nothing of interest."

        parts = [header]
        if room.background:
            parts.append(room.background)
        parts.append(seen)

        return CommandResult(
            message="\n\n".join(parts),
            command=Verb.LOOK,
            room=self.summary(),
            objects=names,
        )

    def _inspect(self, room: RoomDefinition, target: str) -> CommandResult:
        target = target.strip()
        if not target:
            return CommandResult(
                message=f"Inspect what? Usage: {COMMAND_USAGE['inspect']}",
                command=Verb.INSPECT,
                found=False,
            )

        obj = room.find_object(target)
        if obj is None:
            return CommandResult(
                message=f"No object named '{target}' found.",
                command=Verb.INSPECT,
                found=False,
            )

        message = f"{obj.name}: {obj.description}"
        if obj.details:
            message += "\n\n" + "\n".join(obj.details)
        if obj.unlocked:
            message += "\n\nYou have already solved this object's puzzle."

        return CommandResult(
            message=message,
            command=Verb.INSPECT,
            found=True,
            object=obj.model_copy(deep=True),
        )

    def _hint(self, room: RoomDefinition) -> CommandResult:
        if not room.objects:
            return CommandResult(
                message="There are no objects to get hints from.",
                command=Verb.HINT,
            )

        obj = self._rng.choice(room.objects)
        if obj.details:
            clue = self._rng.choice(obj.details)
        elif room.hint:
            clue = room.hint
        else:
            clue = "No details available for this object."

        return CommandResult(
            message=f"Hint from {obj.name}: {clue}",
            command=Verb.HINT,
            hint=HintPayload(source=obj.name, content=clue),
        )

    def _guess(self, room: RoomDefinition, guess: str) -> CommandResult:
        guess = guess.strip()
        if not guess:
            return CommandResult(
                message=f"Guess what? Usage: {COMMAND_USAGE['guess']}",
                command=Verb.GUESS,
            )

        if room.matches_password(guess):
            completed = room.is_last_in_sequence()
            message = f"Correct! The password '{room.password}' unlocks the door."
            if completed:
                message += " Congratulations, you've completed the final room!"
            logger.info(f"Room {self.room_id} unlocked (completed={completed})")
            return CommandResult(
                message=message,
                command=Verb.GUESS,
                unlocked=True,
                escaped=True,
                game_completed=completed,
                room=self.summary(),
            )

        solved = self._solve_object(room, guess)
        if solved is not None:
            return CommandResult(
                message=(
                    f"Something clicks inside the {solved.name}. "
                    f"Its puzzle is solved, but the door stays locked."
                ),
                command=Verb.GUESS,
                solved_object=solved.name,
                room=self.summary(),
            )

        return CommandResult(message="Wrong password. Try again.", command=Verb.GUESS)

    def _solve_object(self, room: RoomDefinition, guess: str) -> GameObject | None:
        """Match '<object name> <answer>' against an object's own puzzle.

        Longer names are tried first so 'Radio Transceiver x' is not read
        as an answer for an object named 'Radio'.
        """
        lowered = guess.lower()
        for obj in sorted(room.objects, key=lambda o: len(o.name), reverse=True):
            prefix = obj.name.lower() + " "
            if not lowered.startswith(prefix):
                continue
            if not obj.answer or obj.answer == UNKNOWN_ANSWER:
                return None
            answer = guess[len(prefix):].strip()
            if answer.lower() == obj.answer.strip().lower():
                obj.unlocked = True
                logger.info(f"Object '{obj.name}' solved in room {self.room_id}")
                return obj
            return None
        return None

    def _unknown(self, command: ParsedCommand) -> CommandResult:
        return CommandResult(
            message=(
                f"Unknown command '{command.raw.strip()}'. "
                f"Try look, inspect <object>, hint, or guess <password>."
            ),
            command=Verb.UNKNOWN,
            commands={
                verb: usage
                for verb, usage in COMMAND_USAGE.items()
                if verb in {"look", "inspect", "hint", "guess"}
            },
        )
