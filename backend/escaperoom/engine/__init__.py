"""Game engine components.

- `catalog.py`: Fixed rooms loaded from YAML
- `repair.py`: Backfill of generated rooms and fallback synthesis
- `room.py`: RoomEngine, one room's definition and commands
- `session.py`: SessionOrchestrator, progression through N rooms
- `store.py`: In-memory session registry
- `dispatcher.py`: CommandDispatcher, the entry point for raw input

Import directly from submodules:
    from escaperoom.engine.room import RoomEngine
    from escaperoom.engine.dispatcher import CommandDispatcher
"""

# Note: No eager imports; dispatcher pulls in the LLM stack
