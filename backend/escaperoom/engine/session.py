"""
Session orchestrator - Drives one player through an ordered list of rooms.

The orchestrator owns N room engines, routes each command to the current
one, and advances when a room is unlocked. The first room is resolved by
``start()``; the room after each unlock is warmed before the result is
returned, so the player never waits on generation between rooms twice.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Sequence

from escaperoom.engine.room import RoomEngine
from escaperoom.models.command import (
    CommandResult,
    GameMode,
    NextRoomInfo,
    RoomProgress,
    SessionStatus,
)

if TYPE_CHECKING:
    from escaperoom.engine.protocols import ContentGenerator, RoomCatalogLookup

logger = logging.getLogger(__name__)

DEFAULT_ROOM_COUNT = 3


class SessionNotReadyError(RuntimeError):
    """Raised when a session is used before its first room is resolved"""


class SessionOrchestrator:
    """One player's traversal of an ordered sequence of rooms.

    ``current_index`` only moves forward and stops at the last room.
    ``unlocked[i]`` records which rooms the player has reached.
    """

    def __init__(
        self,
        engines: Sequence[RoomEngine],
        credential: str | None = None,
        session_id: str | None = None,
        mode: GameMode | None = None,
    ):
        if not engines:
            raise ValueError("A session needs at least one room")

        self.engines: list[RoomEngine] = list(engines)
        self.credential = credential
        self.session_id = session_id
        self.mode = mode

        self.current_index = 0
        self.unlocked = [True] + [False] * (len(self.engines) - 1)
        self.completed = False
        self.initial_result: CommandResult | None = None

        self._started = False
        self._lock = asyncio.Lock()

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def from_catalog(
        cls,
        catalog: "RoomCatalogLookup",
        room_ids: Sequence[int | str],
        *,
        credential: str | None = None,
        session_id: str | None = None,
        mode: GameMode = GameMode.DEFAULT,
        rng: random.Random | None = None,
    ) -> "SessionOrchestrator":
        """Build an unstarted session over catalog rooms, in the given order"""
        total = len(room_ids)
        engines = [
            RoomEngine(
                room_id,
                position,
                total,
                catalog=catalog,
                session_id=session_id,
                rng=rng,
            )
            for position, room_id in enumerate(room_ids, start=1)
        ]
        return cls(engines, credential=credential, session_id=session_id, mode=mode)

    @classmethod
    def generated(
        cls,
        generator: "ContentGenerator",
        room_count: int = DEFAULT_ROOM_COUNT,
        *,
        credential: str | None = None,
        session_id: str | None = None,
        mode: GameMode | None = None,
        timeout: float | None = None,
        rng: random.Random | None = None,
    ) -> "SessionOrchestrator":
        """Build an unstarted session of generated rooms.

        Room ids are derived from the session id. Each engine knows its
        predecessor so continuation prompts can name the previous room.
        """
        if room_count < 1:
            raise ValueError(f"room_count must be at least 1, got {room_count}")

        if mode is None:
            mode = GameMode.SINGLE if room_count == 1 else GameMode.MULTI

        prefix = session_id or "room"
        engines: list[RoomEngine] = []
        previous: RoomEngine | None = None
        for position in range(1, room_count + 1):
            engine = RoomEngine(
                f"{prefix}-{position}",
                position,
                room_count,
                generator=generator,
                predecessor=previous,
                session_id=session_id,
                timeout=timeout,
                rng=rng,
            )
            engines.append(engine)
            previous = engine
        return cls(engines, credential=credential, session_id=session_id, mode=mode)

    @classmethod
    async def create(
        cls, engines: Sequence[RoomEngine], **kwargs
    ) -> "SessionOrchestrator":
        """Build a session and wait until its first room is playable"""
        orchestrator = cls(engines, **kwargs)
        await orchestrator.start()
        return orchestrator

    async def start(self) -> CommandResult:
        """Resolve the first room and return its description.

        Idempotent: a second call returns the first result again.
        """
        async with self._lock:
            if self.initial_result is None:
                self.initial_result = await self.engines[0].process_command(
                    "look", self.credential
                )
                self._started = True
                logger.info(
                    f"Session {self.session_id} ready with {len(self.engines)} room(s)"
                )
        return self.initial_result

    # =========================================================================
    # Play
    # =========================================================================

    @property
    def total_rooms(self) -> int:
        return len(self.engines)

    @property
    def current_engine(self) -> RoomEngine:
        return self.engines[self.current_index]

    async def process(self, raw_input: str) -> CommandResult:
        """Route a command to the current room and advance on unlock.

        Commands are handled one at a time, in arrival order.

        Raises:
            SessionNotReadyError: If start() has not completed
        """
        if not self._started:
            raise SessionNotReadyError(
                f"Session {self.session_id} must be started before processing commands"
            )

        async with self._lock:
            result = await self.current_engine.process_command(
                raw_input, self.credential
            )

            if result.game_completed:
                if not self.completed:
                    logger.info(f"Session {self.session_id} completed")
                self.completed = True
            elif result.unlocked and self.current_index < self.total_rooms - 1:
                await self._advance(result)

            result.session_id = self.session_id
            return result

    async def _advance(self, result: CommandResult) -> None:
        self.current_index += 1
        self.unlocked[self.current_index] = True

        engine = self.current_engine
        await engine.process_command("look", self.credential)
        room = engine.definition

        position = self.current_index + 1
        logger.info(
            f"Session {self.session_id} advanced to room {position} of {self.total_rooms}"
        )
        result.message += f"\n\nMoving to room {position} of {self.total_rooms}: {room.name}."
        result.next_room = NextRoomInfo(
            id=engine.room_id, sequence_index=position, name=room.name
        )

    def get_status(self) -> SessionStatus:
        """Current position and progress.

        Progress counts rooms entered: it is 0 in the first room and never
        reaches 100 through advancement alone. ``completed`` marks a won game.
        """
        definition = self.current_engine.definition
        return SessionStatus(
            session_id=self.session_id,
            mode=self.mode,
            current_room=self.current_index + 1,
            current_room_name=definition.name if definition else None,
            total_rooms=self.total_rooms,
            progress_percent=int(self.current_index * 100 / self.total_rooms + 0.5),
            completed=self.completed,
            rooms=self.rooms_summary(),
        )

    def rooms_summary(self) -> list[RoomProgress]:
        """Every room in order, with its name once it has been resolved"""
        summary = []
        for index, engine in enumerate(self.engines):
            definition = engine.definition
            summary.append(
                RoomProgress(
                    id=engine.room_id,
                    sequence_index=index + 1,
                    name=definition.name if definition else None,
                    unlocked=self.unlocked[index],
                    current=index == self.current_index,
                )
            )
        return summary
