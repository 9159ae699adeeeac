"""
Session store - In-memory registry of active game sessions
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from escaperoom.engine.session import SessionOrchestrator
from escaperoom.llm.session_logger import close_session_log
from escaperoom.models.command import GameMode

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """A stored session and how it was started"""

    session_id: str
    orchestrator: SessionOrchestrator
    mode: GameMode
    created_at: datetime = field(default_factory=datetime.now)


class SessionStore:
    """Maps session ids to sessions for whoever hosts the dispatcher.

    Nothing is persisted; a process restart forgets every session.
    """

    def __init__(self):
        self._sessions: dict[str, GameSession] = {}

    def create(
        self, session_id: str, orchestrator: SessionOrchestrator, mode: GameMode
    ) -> GameSession:
        """Register a session.

        Raises:
            ValueError: If the id is already in use
        """
        if session_id in self._sessions:
            raise ValueError(f"Session {session_id} already exists")
        session = GameSession(session_id=session_id, orchestrator=orchestrator, mode=mode)
        self._sessions[session_id] = session
        logger.info(f"Stored session {session_id} ({mode.value})")
        return session

    def get(self, session_id: str) -> GameSession | None:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        """Remove a session; returns False if it did not exist"""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        close_session_log(session_id)
        logger.info(f"Removed session {session_id}")
        return True

    def list(self) -> list[GameSession]:
        return list(self._sessions.values())

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
