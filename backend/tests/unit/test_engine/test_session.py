"""Unit tests for SessionOrchestrator and SessionStore.

Tests cover:
- Readiness: commands before start() fail loudly
- Advancement on unlock, eager warming of the next room
- Terminal completion and progress reporting
- Generated sessions: ids, predecessors, shared credential
- In-memory session store lifecycle
"""

import asyncio

import pytest
import pytest_asyncio

from escaperoom.engine.room import RoomEngine
from escaperoom.engine.session import SessionNotReadyError, SessionOrchestrator
from escaperoom.engine.store import SessionStore
from escaperoom.models.command import GameMode


class TestReadiness:
    """Tests for session start-up."""

    @pytest.mark.asyncio
    async def test_process_before_start(self, catalog) -> None:
        """Processing before start() is a collaborator error."""
        session = SessionOrchestrator.from_catalog(catalog, catalog.ids())

        with pytest.raises(SessionNotReadyError):
            await session.process("look")

    @pytest.mark.asyncio
    async def test_start_looks_at_first_room(self, catalog) -> None:
        """start() resolves room 1 and returns its description."""
        session = SessionOrchestrator.from_catalog(catalog, catalog.ids())

        result = await session.start()

        assert session.initial_result is not None
        assert "The Foyer of Fading Secrets" in result.message
        assert await session.start() is result

    @pytest.mark.asyncio
    async def test_create_builds_and_starts(self, catalog) -> None:
        """create() returns a ready session."""
        engines = [RoomEngine(1, 1, 1, catalog=catalog)]

        session = await SessionOrchestrator.create(engines, session_id="s1")

        assert session.initial_result is not None
        assert session.session_id == "s1"

    @pytest.mark.asyncio
    async def test_start_survives_non_text_content(self, mock_generator) -> None:
        """A generator answering with a mapping still yields a playable room."""
        session = SessionOrchestrator.generated(
            mock_generator({"default": {"name": "x"}}), 1, credential="secret"
        )

        result = await session.start()

        assert "Fallback Room 1" in result.message
        assert (await session.process("guess fallback123")).unlocked is True

    def test_needs_rooms(self) -> None:
        """A session without rooms cannot exist."""
        with pytest.raises(ValueError):
            SessionOrchestrator([])


class TestProgression:
    """Tests for advancing through catalog rooms."""

    @pytest_asyncio.fixture
    async def session(self, catalog) -> SessionOrchestrator:
        session = SessionOrchestrator.from_catalog(catalog, catalog.ids(), session_id="s1")
        await session.start()
        return session

    @pytest.mark.asyncio
    async def test_initial_state(self, session) -> None:
        """Only the first room is unlocked at the start."""
        assert session.current_index == 0
        assert session.unlocked == [True, False, False]

    @pytest.mark.asyncio
    async def test_unlock_advances(self, session) -> None:
        """A correct password moves to the next room."""
        result = await session.process("guess 007")

        assert result.unlocked is True
        assert session.current_index == 1
        assert session.unlocked == [True, True, False]
        assert result.next_room.sequence_index == 2
        assert result.next_room.name == "The Study of Shadows"
        assert result.message.endswith("Moving to room 2 of 3: The Study of Shadows.")
        assert result.session_id == "s1"

    @pytest.mark.asyncio
    async def test_wrong_guess_stays(self, session) -> None:
        """A wrong password leaves the index unchanged."""
        result = await session.process("guess wrong")

        assert result.unlocked is False
        assert session.current_index == 0
        assert result.next_room is None

    @pytest.mark.asyncio
    async def test_commands_go_to_current_room(self, session) -> None:
        """After advancing, commands reach the new room."""
        await session.process("guess 007")

        result = await session.process("inspect portrait")

        assert result.found is True
        assert result.object.name == "Portrait"

    @pytest.mark.asyncio
    async def test_last_room_completes(self, session) -> None:
        """The last unlock completes the game without advancing."""
        await session.process("guess 007")
        await session.process("guess Alpha-2")

        result = await session.process("guess Cipher3")

        assert result.game_completed is True
        assert result.next_room is None
        assert session.current_index == 2
        assert session.completed is True

    @pytest.mark.asyncio
    async def test_index_never_passes_last(self, session) -> None:
        """Repeating the final password keeps the index at the last room."""
        for password in ("007", "Alpha-2", "Cipher3", "Cipher3"):
            await session.process(f"guess {password}")

        assert session.current_index == 2

    @pytest.mark.asyncio
    async def test_commands_processed_in_order(self, session) -> None:
        """Concurrent commands on one session are handled in arrival order."""
        unlock, look = await asyncio.gather(
            session.process("guess 007"),
            session.process("look"),
        )

        assert unlock.unlocked is True
        assert "The Study of Shadows" in look.message


class TestStatus:
    """Tests for get_status."""

    @pytest.mark.asyncio
    async def test_progress_counts_rooms_entered(self, catalog) -> None:
        """Progress is round(index / N * 100)."""
        session = SessionOrchestrator.from_catalog(catalog, catalog.ids())
        await session.start()

        percents = [session.get_status().progress_percent]
        for password in ("007", "Alpha-2", "Cipher3"):
            await session.process(f"guess {password}")
            percents.append(session.get_status().progress_percent)

        assert percents == [0, 33, 67, 67]

    @pytest.mark.asyncio
    async def test_completed_flag(self, catalog) -> None:
        """A won game is flagged as completed."""
        session = SessionOrchestrator.from_catalog(catalog, [3])
        await session.start()

        await session.process("guess cipher3")
        status = session.get_status()

        assert status.completed is True
        assert status.current_room == 1
        assert status.total_rooms == 1

    @pytest.mark.asyncio
    async def test_status_fields(self, catalog) -> None:
        """Status carries mode, position and room name."""
        session = SessionOrchestrator.from_catalog(catalog, catalog.ids(), session_id="s1")
        await session.start()

        status = session.get_status()

        assert status.session_id == "s1"
        assert status.mode == GameMode.DEFAULT
        assert status.current_room == 1
        assert status.current_room_name == "The Foyer of Fading Secrets"
        assert status.completed is False

    @pytest.mark.asyncio
    async def test_rooms_summary(self, catalog) -> None:
        """Status lists every room with its unlocked and current flags."""
        session = SessionOrchestrator.from_catalog(catalog, catalog.ids())
        await session.start()
        await session.process("guess 007")

        rooms = session.get_status().rooms

        assert [room.sequence_index for room in rooms] == [1, 2, 3]
        assert [room.unlocked for room in rooms] == [True, True, False]
        assert [room.current for room in rooms] == [False, True, False]
        assert [room.label for room in rooms] == ["UNLOCKED", "CURRENT", "LOCKED"]
        assert rooms[1].name == "The Study of Shadows"

    @pytest.mark.asyncio
    async def test_unresolved_rooms_have_no_name(self, mock_generator) -> None:
        """Generated rooms not reached yet are listed without a name."""
        session = SessionOrchestrator.generated(mock_generator(), 3, credential="secret")
        await session.start()

        rooms = session.get_status().rooms

        assert rooms[0].name == "The Lantern Archive"
        assert rooms[1].name is None
        assert rooms[2].name is None


class TestGeneratedSession:
    """Tests for sessions of generated rooms."""

    def test_room_ids_and_predecessors(self, mock_generator) -> None:
        """Room ids derive from the session id and rooms chain together."""
        session = SessionOrchestrator.generated(
            mock_generator(), 3, credential="secret", session_id="abc"
        )

        assert [e.room_id for e in session.engines] == ["abc-1", "abc-2", "abc-3"]
        assert session.engines[0].predecessor is None
        assert session.engines[2].predecessor is session.engines[1]
        assert session.mode == GameMode.MULTI

    def test_single_room_mode(self, mock_generator) -> None:
        """One generated room is the single mode."""
        session = SessionOrchestrator.generated(mock_generator(), 1)
        assert session.mode == GameMode.SINGLE
        assert session.total_rooms == 1

    def test_room_count_must_be_positive(self, mock_generator) -> None:
        """Zero rooms is rejected."""
        with pytest.raises(ValueError):
            SessionOrchestrator.generated(mock_generator(), 0)

    @pytest.mark.asyncio
    async def test_only_first_room_generated_at_start(self, mock_generator) -> None:
        """Later rooms are generated lazily."""
        generator = mock_generator()
        session = SessionOrchestrator.generated(generator, 3, credential="secret")

        await session.start()

        assert len(generator.call_history) == 1
        assert not session.engines[1].is_resolved

    @pytest.mark.asyncio
    async def test_next_room_warmed_on_unlock(self, mock_generator) -> None:
        """Unlocking a room generates the next one before returning."""
        generator = mock_generator()
        session = SessionOrchestrator.generated(generator, 2, credential="secret")
        await session.start()

        result = await session.process("guess lumen")

        assert result.unlocked is True
        assert session.engines[1].is_resolved
        assert len(generator.call_history) == 2
        assert all(call.credential == "secret" for call in generator.call_history)

    @pytest.mark.asyncio
    async def test_fallback_session_is_completable(self, mock_generator) -> None:
        """Without a credential every room falls back and can still be won."""
        session = SessionOrchestrator.generated(mock_generator(), 2)
        await session.start()

        first = await session.process("guess fallback123")
        second = await session.process("guess fallback123")

        assert first.next_room.name == "Fallback Room 2"
        assert second.game_completed is True


class TestSessionStore:
    """Tests for SessionStore."""

    @pytest.fixture
    def orchestrator(self, catalog) -> SessionOrchestrator:
        return SessionOrchestrator.from_catalog(catalog, catalog.ids())

    def test_create_and_get(self, orchestrator) -> None:
        """Created sessions can be retrieved by id."""
        store = SessionStore()

        created = store.create("s1", orchestrator, GameMode.DEFAULT)

        assert store.get("s1") is created
        assert created.orchestrator is orchestrator
        assert "s1" in store
        assert len(store) == 1

    def test_duplicate_id_rejected(self, orchestrator) -> None:
        """Session ids are unique."""
        store = SessionStore()
        store.create("s1", orchestrator, GameMode.DEFAULT)

        with pytest.raises(ValueError):
            store.create("s1", orchestrator, GameMode.DEFAULT)

    def test_delete(self, orchestrator) -> None:
        """Deleted sessions are gone; deleting twice reports False."""
        store = SessionStore()
        store.create("s1", orchestrator, GameMode.DEFAULT)

        assert store.delete("s1") is True
        assert store.get("s1") is None
        assert store.delete("s1") is False

    def test_list(self, orchestrator) -> None:
        """list returns every stored session."""
        store = SessionStore()
        store.create("s1", orchestrator, GameMode.DEFAULT)
        store.create("s2", orchestrator, GameMode.DEFAULT)

        assert [s.session_id for s in store.list()] == ["s1", "s2"]
