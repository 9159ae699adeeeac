"""
Protocol definitions for the room engine's external collaborators.

Using protocols keeps the engine independent of any particular LLM
provider or room source:

- Dependency injection for testing
- Clear component boundaries
- Swappable implementations

Component Flow:
    CommandDispatcher -> SessionOrchestrator -> RoomEngine
                                                    |
                              (first access only)   v
                                  ContentGenerator / RoomCatalogLookup
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from escaperoom.models.room import GenerationPrompt, RoomDefinition


@runtime_checkable
class ContentGenerator(Protocol):
    """Produces raw room content from a prompt.

    The returned text is expected to parse into a RoomDefinition, but
    callers must tolerate any latency and any malformed output. Transport
    and provider failures are raised as exceptions.

    Example implementations:
        - LiteLLMRoomGenerator: Calls a chat model through LiteLLM
        - MockContentGenerator: Canned responses for tests
    """

    async def generate(self, prompt: "GenerationPrompt", credential: str) -> str:
        """Generate raw room content.

        Args:
            prompt: System role and user directive for the generator
            credential: Secret required by the provider

        Returns:
            Raw text, ideally a JSON object describing one room
        """
        ...


@runtime_checkable
class RoomCatalogLookup(Protocol):
    """Synchronous, read-only source of pre-built rooms."""

    def lookup(self, room_id: int | str) -> "RoomDefinition | None":
        """Return a private copy of the room, or None if unknown"""
        ...

    def __contains__(self, room_id: object) -> bool:
        ...
