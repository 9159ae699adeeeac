"""
Session-based generation logger.

Creates human-readable log files for each game session with clearly
separated room generation attempts: the prompt, the raw generator
output, and how the engine resolved it (generated, repaired, fallback).

File logging is enabled by setting GENERATION_LOG_DIR.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from escaperoom.models.generation import GenerationAttempt


def get_log_dir() -> Path | None:
    """Directory for session logs, or None when file logging is off"""
    log_dir = os.getenv("GENERATION_LOG_DIR")
    return Path(log_dir) if log_dir else None


class SessionLogger:
    """Logs room generation attempts for a game session to a dedicated file."""

    def __init__(self, session_id: str, log_dir: Path):
        self.session_id = session_id
        self.log_dir = log_dir
        self.attempt_count = 0
        self.log_file: Path | None = None

    def _ensure_log_file(self) -> Path:
        """Create the log file on first attempt."""
        if self.log_file is None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

            started = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            self.log_file = self.log_dir / f"{started}_{self.session_id}.log"

            with open(self.log_file, "w", encoding="utf-8") as f:
                f.write("Escape Room Session Log\n")
                f.write("=======================\n")
                f.write(f"Session ID: {self.session_id}\n")
                f.write(f"Started: {datetime.now().isoformat()}\n")
                f.write("\n")

        return self.log_file

    def log_attempt(self, attempt: "GenerationAttempt") -> None:
        """Append one generation attempt to the session file."""
        log_file = self._ensure_log_file()
        self.attempt_count += 1

        position = (
            f"room {attempt.sequence_index} of {attempt.total_in_sequence}"
            if attempt.sequence_index is not None
            else "standalone room"
        )

        with open(log_file, "a", encoding="utf-8") as f:
            f.write("═" * 70 + "\n")
            f.write(
                f"GENERATION #{self.attempt_count} | "
                f"{attempt.timestamp.strftime('%Y-%m-%d %H:%M:%S')} | "
                f"{attempt.room_id} ({position})\n"
            )
            f.write("═" * 70 + "\n\n")

            f.write(f"Outcome: {attempt.outcome.value}\n")
            if attempt.fallback_reason:
                f.write(f"Fallback reason: {attempt.fallback_reason}\n")
            if attempt.error:
                f.write(f"Error: {attempt.error}\n")
            f.write(f"Duration: {attempt.duration_seconds:.2f}s\n\n")

            if attempt.system_role is not None:
                f.write("─── SYSTEM ROLE ───\n")
                f.write(attempt.system_role)
                f.write("\n\n")

            if attempt.user_directive is not None:
                f.write("─── USER DIRECTIVE ───\n")
                f.write(attempt.user_directive)
                f.write("\n\n")

            if attempt.raw_response is not None:
                f.write("─── RAW RESPONSE ───\n")
                f.write(attempt.raw_response or "(empty)")
                f.write("\n\n")

            if attempt.repair_notes:
                f.write("─── REPAIRS ───\n")
                for note in attempt.repair_notes:
                    f.write(f"  - {note}\n")
                f.write("\n")


# Loggers per session
_session_loggers: dict[str, SessionLogger] = {}


def log_generation_attempt(session_id: str | None, attempt: "GenerationAttempt") -> None:
    """Log an attempt to the session file when file logging is enabled."""
    log_dir = get_log_dir()
    if log_dir is None or session_id is None:
        return

    logger = _session_loggers.get(session_id)
    if logger is None:
        logger = SessionLogger(session_id, log_dir)
        _session_loggers[session_id] = logger
    logger.log_attempt(attempt)


def close_session_log(session_id: str) -> None:
    """Forget the logger for a finished session."""
    _session_loggers.pop(session_id, None)
