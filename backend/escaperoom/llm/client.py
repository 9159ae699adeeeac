"""
LLM client - Provider-agnostic chat completions through LiteLLM

Configuration comes from the environment (a ``.env`` file is honoured):

    LLM_PROVIDER             openai | anthropic | gemini | ollama (default openai)
    LLM_MODEL                model name without provider prefix (default gpt-4.1)
    <PROVIDER>_API_KEY       default generation credential
    OLLAMA_BASE_URL          stands in for the credential with ollama
    ROOM_GENERATION_TIMEOUT  seconds per room generation call (default 60)
"""

import json
import logging
import os
import re
from typing import Any

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "openai"
DEFAULT_MODEL = "gpt-4.1"
DEFAULT_GENERATION_TIMEOUT = 60.0

PROVIDER_KEY_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

# LiteLLM routes these providers by model prefix
PREFIXED_PROVIDERS = {"anthropic", "gemini", "ollama"}

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_OBJECT = re.compile(r"\{[\s\S]*\}")


def get_provider() -> str:
    return os.getenv("LLM_PROVIDER", DEFAULT_PROVIDER)


def get_model() -> str:
    return os.getenv("LLM_MODEL", DEFAULT_MODEL)


def get_model_string() -> str:
    """Model string in LiteLLM's ``provider/model`` form"""
    provider = get_provider()
    model = get_model()
    if provider in PREFIXED_PROVIDERS:
        return f"{provider}/{model}"
    return model


def get_default_credential() -> str | None:
    """Credential for new games that do not bring their own.

    Ollama runs locally without a key, so its base URL stands in for it.
    """
    provider = get_provider()
    if provider == "ollama":
        return os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    key_var = PROVIDER_KEY_VARS.get(provider)
    return os.getenv(key_var) if key_var else None


def get_generation_timeout() -> float:
    """Seconds to wait for one room generation call"""
    raw = os.getenv("ROOM_GENERATION_TIMEOUT")
    if raw is None:
        return DEFAULT_GENERATION_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning(
            f"Invalid ROOM_GENERATION_TIMEOUT={raw!r}, using {DEFAULT_GENERATION_TIMEOUT}s"
        )
        return DEFAULT_GENERATION_TIMEOUT


async def get_completion(
    messages: list[dict[str, str]],
    model: str | None = None,
    temperature: float = 0.7,
    max_tokens: int = 2048,
    response_format: dict | None = None,
    api_key: str | None = None,
) -> str | None:
    """
    Run one chat completion.

    Args:
        messages: Chat messages with 'role' and 'content'
        model: LiteLLM model string; the configured model if omitted
        temperature: Sampling temperature
        max_tokens: Maximum response length
        response_format: e.g. ``{"type": "json_object"}``
        api_key: Per-call credential; with ollama it is the base URL

    Returns:
        The message content, which may be None or empty

    Raises:
        Exception: Whatever LiteLLM raises, after logging it
    """
    import litellm

    kwargs: dict[str, Any] = {
        "model": model or get_model_string(),
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if response_format:
        kwargs["response_format"] = response_format
    if get_provider() == "ollama":
        kwargs["api_base"] = api_key or get_default_credential()
    elif api_key:
        kwargs["api_key"] = api_key

    logger.info(f"LLM request: model={kwargs['model']}, max_tokens={max_tokens}")
    try:
        response = await litellm.acompletion(**kwargs)
    except Exception as e:
        logger.error(f"LLM Error: {type(e).__name__}: {e}")
        raise

    choice = response.choices[0]
    content = choice.message.content
    finish_reason = getattr(choice, "finish_reason", "unknown")
    logger.info(
        f"LLM response: finish_reason={finish_reason}, length={len(content or '')}"
    )
    if finish_reason == "length":
        logger.warning(f"LLM response truncated at max_tokens={max_tokens}")
    return content


def parse_json_response(response: str | None) -> Any:
    """
    Parse the JSON a model returned.

    Markdown fences are stripped; if the text still does not parse, the
    outermost ``{...}`` span is tried before giving up.

    Raises:
        ValueError: If the response is empty or holds no parsable JSON
    """
    if response is None or not response.strip():
        raise ValueError("LLM returned empty response.")

    cleaned = _FENCE.sub("", response.strip())
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    match = _OBJECT.search(cleaned)
    if match:
        try:
            return json.loads(match.group())
        except json.JSONDecodeError:
            pass

    preview = cleaned if len(cleaned) <= 200 else cleaned[:200] + "..."
    raise ValueError(f"No parsable JSON in LLM response: {preview}")
