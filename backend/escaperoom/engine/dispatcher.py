"""
Command dispatcher - Routes player input to sessions.

``newgame``, ``status`` and ``help`` are answered here; ``look``,
``inspect``, ``hint`` and ``guess`` go to the session's current room.
Finished sessions are removed from the store once the final room is won.
"""

from __future__ import annotations

import logging
import random
import uuid
from typing import TYPE_CHECKING

from escaperoom.engine.catalog import default_catalog
from escaperoom.engine.parser import COMMAND_USAGE, parse_command
from escaperoom.engine.session import DEFAULT_ROOM_COUNT, SessionOrchestrator
from escaperoom.engine.store import SessionStore
from escaperoom.llm.room_generator import LiteLLMRoomGenerator
from escaperoom.models.command import CommandResult, GameMode, Verb

if TYPE_CHECKING:
    from escaperoom.engine.catalog import RoomCatalog
    from escaperoom.engine.protocols import ContentGenerator

logger = logging.getLogger(__name__)

MAX_ROOM_COUNT = 10

NO_SESSION_MESSAGE = "No active game. Type 'newgame' to start one."


class CommandDispatcher:
    """Entry point for raw player commands.

    Example:
        >>> dispatcher = CommandDispatcher()
        >>> started = await dispatcher.dispatch(None, "newgame")
        >>> result = await dispatcher.dispatch(started.session_id, "guess 007")
        >>> result.next_room.sequence_index
        2
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        catalog: "RoomCatalog | None" = None,
        generator: "ContentGenerator | None" = None,
        default_credential: str | None = None,
        timeout: float | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize the dispatcher.

        Args:
            store: Session registry (a fresh in-memory store if omitted)
            catalog: Rooms for default games (the packaged catalog if omitted)
            generator: Content generator for single/multi games
            default_credential: Used when a new game is started without one
            timeout: Per-room generation timeout in seconds
            rng: Random source shared by all rooms, for reproducible hints
        """
        self.store = store if store is not None else SessionStore()
        self.catalog = catalog if catalog is not None else default_catalog()
        self.generator = generator or LiteLLMRoomGenerator()
        self.default_credential = default_credential
        self.timeout = timeout
        self.rng = rng

    async def dispatch(
        self,
        session_id: str | None,
        raw_input: str,
        credential: str | None = None,
    ) -> CommandResult:
        """Handle one command line.

        Args:
            session_id: The player's session, or None before a game starts
            raw_input: Raw command, with or without a leading slash
            credential: Generation credential for a new game; existing
                sessions keep the credential they were started with

        Returns:
            CommandResult; user mistakes are results, never exceptions
        """
        command = parse_command(raw_input)

        if command.verb == Verb.NEWGAME:
            return await self._new_game_command(session_id, command.argument, credential)
        if command.verb == Verb.HELP:
            return self.help()

        session = self.store.get(session_id) if session_id else None
        if session is None:
            return CommandResult(message=NO_SESSION_MESSAGE, command=command.verb)

        if command.verb == Verb.STATUS:
            return self.status(session_id)

        orchestrator = session.orchestrator
        result = await orchestrator.process(raw_input)
        if result.game_completed:
            result.status = orchestrator.get_status()
            self.store.delete(session_id)
        return result

    # =========================================================================
    # New games
    # =========================================================================

    async def _new_game_command(
        self, session_id: str | None, argument: str, credential: str | None
    ) -> CommandResult:
        tokens = argument.split()
        try:
            mode = GameMode(tokens[0].lower()) if tokens else GameMode.DEFAULT
            room_count = int(tokens[1]) if len(tokens) > 1 else None
        except ValueError:
            return CommandResult(
                message=f"Usage: {COMMAND_USAGE['newgame']}",
                command=Verb.NEWGAME,
            )

        try:
            result = await self.new_game(mode, room_count, credential)
        except ValueError as e:
            return CommandResult(message=str(e), command=Verb.NEWGAME)

        # The old game survives a rejected newgame
        if session_id and self.store.delete(session_id):
            logger.info(f"Session {session_id} abandoned for a new game")
        return result

    def _build_orchestrator(
        self,
        session_id: str,
        mode: GameMode,
        room_count: int | None,
        credential: str | None,
    ) -> SessionOrchestrator:
        if mode == GameMode.DEFAULT:
            room_ids = self.catalog.ids()
            if room_count is not None:
                if not 1 <= room_count <= len(room_ids):
                    raise ValueError(
                        f"The default game has 1 to {len(room_ids)} rooms, not {room_count}."
                    )
                room_ids = room_ids[:room_count]
            return SessionOrchestrator.from_catalog(
                self.catalog,
                room_ids,
                credential=credential,
                session_id=session_id,
                rng=self.rng,
            )

        if mode == GameMode.SINGLE:
            if room_count not in (None, 1):
                raise ValueError("A single game has exactly one room.")
            room_count = 1
        else:
            if room_count is None:
                room_count = DEFAULT_ROOM_COUNT
            if not 1 <= room_count <= MAX_ROOM_COUNT:
                raise ValueError(
                    f"A multi-room game has 1 to {MAX_ROOM_COUNT} rooms, not {room_count}."
                )

        return SessionOrchestrator.generated(
            self.generator,
            room_count,
            credential=credential,
            session_id=session_id,
            mode=mode,
            timeout=self.timeout,
            rng=self.rng,
        )

    async def new_game(
        self,
        mode: GameMode = GameMode.DEFAULT,
        room_count: int | None = None,
        credential: str | None = None,
    ) -> CommandResult:
        """Start and store a new session.

        The first room is resolved before this returns.

        Raises:
            ValueError: If the room count does not fit the mode
        """
        session_id = str(uuid.uuid4())
        credential = credential or self.default_credential
        orchestrator = self._build_orchestrator(session_id, mode, room_count, credential)

        first = await orchestrator.start()
        self.store.create(session_id, orchestrator, mode)
        logger.info(
            f"New {mode.value} game {session_id} with {orchestrator.total_rooms} room(s)"
        )

        plural = "room" if orchestrator.total_rooms == 1 else "rooms"
        return first.model_copy(
            update={
                "message": (
                    f"New {mode.value} game started with "
                    f"{orchestrator.total_rooms} {plural}.\n\n{first.message}"
                ),
                "command": Verb.NEWGAME,
                "session_id": session_id,
                "status": orchestrator.get_status(),
            }
        )

    # =========================================================================
    # Session-level commands
    # =========================================================================

    def status(self, session_id: str) -> CommandResult:
        """Progress of an active session"""
        session = self.store.get(session_id)
        if session is None:
            return CommandResult(message=NO_SESSION_MESSAGE, command=Verb.STATUS)

        status = session.orchestrator.get_status()
        message = (
            f"Room {status.current_room} of {status.total_rooms}"
            + (f": {status.current_room_name}" if status.current_room_name else "")
            + f". Progress: {status.progress_percent}%."
        )
        for room in status.rooms:
            name = room.name or "not yet generated"
            message += f"\n- Room {room.sequence_index}: {name} [{room.label}]"
        return CommandResult(
            message=message,
            command=Verb.STATUS,
            status=status,
            session_id=session_id,
        )

    def help(self) -> CommandResult:
        lines = ["Available commands:"] + [f"  {usage}" for usage in COMMAND_USAGE.values()]
        return CommandResult(
            message="\n".join(lines),
            command=Verb.HELP,
            commands=dict(COMMAND_USAGE),
        )
