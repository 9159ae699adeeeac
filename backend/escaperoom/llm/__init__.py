"""LLM integration components.

- `client.py`: LiteLLM client wrapper and configuration
- `prompt_loader.py`: Prompt template loading utility
- `room_generator.py`: Prompt building and the LiteLLM room generator
- `session_logger.py`: Per-session generation log files
"""

from escaperoom.llm.client import get_completion, parse_json_response, get_model_string
from escaperoom.llm.prompt_loader import get_loader

__all__ = [
    "get_completion",
    "parse_json_response",
    "get_model_string",
    "get_loader",
]
