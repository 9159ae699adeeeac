"""
Room Generator - AI room generation through LiteLLM

Builds the role-specific prompt for a room (standalone, first of a
sequence, or a continuation of the previous room) and calls the
configured chat model. Parsing and repair of the returned text are the
room engine's job; this module only produces raw text.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from escaperoom.llm.client import get_completion, get_model_string
from escaperoom.llm.prompt_loader import get_loader
from escaperoom.models.room import GenerationPrompt

if TYPE_CHECKING:
    from escaperoom.models.room import RoomDefinition

logger = logging.getLogger(__name__)

PROMPT_CATEGORY = "room_generator"

# Keep continuation prompts bounded when a previous background is long
MAX_PREVIOUS_BACKGROUND = 600


def _prompt(filename: str, **fields) -> str:
    return get_loader().render(PROMPT_CATEGORY, filename, **fields)


def build_generation_prompt(
    sequence_index: int | None = None,
    total_in_sequence: int | None = None,
    previous: "RoomDefinition | None" = None,
) -> GenerationPrompt:
    """Build the prompt for one room.

    Args:
        sequence_index: 1-based position, or None for a standalone room
        total_in_sequence: Number of rooms in the game
        previous: The already-resolved previous room, used when K > 1

    Returns:
        GenerationPrompt with the shared system role and a role-specific
        user directive
    """
    # Holds a literal JSON example, so it is not a format template
    system_role = get_loader().get_prompt(PROMPT_CATEGORY, "system_prompt.txt").strip()

    if sequence_index is None or total_in_sequence is None:
        return GenerationPrompt(
            system_role=system_role,
            user_directive=_prompt("standalone_directive.txt"),
        )

    if sequence_index > 1 and previous is not None:
        background = previous.background
        if len(background) > MAX_PREVIOUS_BACKGROUND:
            background = background[:MAX_PREVIOUS_BACKGROUND] + "..."
        directive = _prompt(
            "continuation_directive.txt",
            sequence_index=sequence_index,
            total_in_sequence=total_in_sequence,
            previous_name=previous.name,
            previous_background=background,
        )
    else:
        directive = _prompt(
            "sequence_directive.txt",
            sequence_index=sequence_index,
            total_in_sequence=total_in_sequence,
        )

    return GenerationPrompt(system_role=system_role, user_directive=directive)


class LiteLLMRoomGenerator:
    """ContentGenerator backed by a LiteLLM chat completion"""

    def __init__(
        self,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(self, prompt: GenerationPrompt, credential: str) -> str:
        """Request one room as a JSON object"""
        messages = [
            {"role": "system", "content": prompt.system_role},
            {"role": "user", "content": prompt.user_directive},
        ]

        model = self.model or get_model_string()
        logger.info(f"Generating room with {model}")
        logger.debug(f"User directive: {prompt.user_directive[:200]}")

        response = await get_completion(
            messages,
            model=model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
            api_key=credential,
        )
        return response or ""
