"""
Shared pytest fixtures for escape room backend tests.

This module provides:
- catalog: The packaged three-room catalog, freshly loaded
- sample_room: A standalone RoomDefinition with predictable content
- valid_room_json / partial_room_json: Canned generator output
- mock_generator: Factory for MockContentGenerator instances
- Custom markers for test categorization
"""

from __future__ import annotations

import json
import os
import random
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

# Use LiteLLM's bundled model cost map; its network fetch on import can
# deadlock under test when offline
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

# Add backend to path for imports
backend_path = Path(__file__).parent.parent
if str(backend_path) not in sys.path:
    sys.path.insert(0, str(backend_path))

from escaperoom.engine.catalog import DEFAULT_CATALOG_PATH, RoomCatalog  # noqa: E402
from escaperoom.models.room import GameObject, RoomDefinition  # noqa: E402

if TYPE_CHECKING:
    from tests.mocks.generator import MockContentGenerator


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


# =============================================================================
# Room Fixtures
# =============================================================================


@pytest.fixture
def catalog() -> RoomCatalog:
    """Load the default catalog from the packaged YAML."""
    return RoomCatalog.from_yaml(DEFAULT_CATALOG_PATH)


@pytest.fixture
def sample_room() -> RoomDefinition:
    """Create a standalone room with two objects."""
    return RoomDefinition(
        identity="sample",
        name="The Clockwork Vault",
        background="Gears turn slowly behind glass panels.",
        password="tick-tock",
        hint="Listen to the clock.",
        objects=[
            GameObject(
                name="Clock",
                description="A grandfather clock stopped at midnight.",
                puzzle="How many chimes at midnight?",
                answer="12",
                details=["The hands both point straight up.", "It ticks, then tocks."],
            ),
            GameObject(
                name="Ledger",
                description="A ledger full of crossed-out numbers.",
                puzzle="Hidden puzzle within the description",
                answer="unknown",
                details=["The last entry reads 'tick'."],
            ),
        ],
    )


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for reproducible hints."""
    return random.Random(7)


# =============================================================================
# Generator Output Fixtures
# =============================================================================


@pytest.fixture
def valid_room_json() -> str:
    """Complete generator output that needs no repair."""
    return json.dumps(
        {
            "name": "The Lantern Archive",
            "background": "Shelves of glowing lanterns line a circular hall.",
            "password": "LUMEN",
            "hint": "Read the first letter of each lantern's colour.",
            "objects": [
                {
                    "name": "Blue Lantern",
                    "description": "Its glass is etched with '.-..'.",
                    "puzzle": "Morse: .-..",
                    "answer": "L",
                    "details": ["The etching is Morse code.", "It flickers once."],
                    "unlocked": False,
                },
                {
                    "name": "Index Card",
                    "description": "A card reading 'U M E N'.",
                    "puzzle": "Letters with gaps",
                    "answer": "UMEN",
                    "details": ["The letters are spaced evenly."],
                    "unlocked": False,
                },
            ],
            "escaped": False,
        }
    )


@pytest.fixture
def partial_room_json() -> str:
    """Generator output missing optional fields, wrapped in a code fence."""
    payload = {
        "name": "The Salt Cellar",
        "background": "A cellar with barrels of sea salt.",
        "password": "brine",
        "objects": [
            {"name": "Barrel", "description": "A barrel stamped 'B'."},
            {"name": "Scoop", "description": "A rusty scoop.", "details": "Rust spells 'rine'."},
        ],
    }
    return "```json\n" + json.dumps(payload) + "\n```"


# =============================================================================
# Generator Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_generator(valid_room_json) -> callable:
    """Factory fixture to create mock generators.

    Usage:
        def test_something(mock_generator):
            generator = mock_generator({"room 2 of": '{"name": ...}'})
            stalled = mock_generator(delay=5)
    """
    from tests.mocks.generator import MockContentGenerator

    def _factory(
        responses: dict[str, str] | None = None, **kwargs
    ) -> "MockContentGenerator":
        if responses is None:
            responses = {"default": valid_room_json}
        return MockContentGenerator(responses=responses, **kwargs)

    return _factory
