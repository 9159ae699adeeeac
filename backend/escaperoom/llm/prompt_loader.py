"""
Prompt Loader - Room generation prompt templates stored as text files.

Templates live in ``prompts/<category>/<name>.txt`` next to this module and
are read lazily. Each entry remembers the file's modification time, so an
edited template is picked up on its next use without a restart.
"""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).parent / "prompts"


class PromptLoader:
    """Lazily reads and caches prompt templates."""

    def __init__(self, prompts_dir: Optional[Path] = None):
        self.prompts_dir = Path(prompts_dir or DEFAULT_PROMPTS_DIR)
        # "<category>/<filename>" -> (mtime, text)
        self._entries: dict[str, tuple[float, str]] = {}

    def get_prompt(self, category: str, filename: str) -> str:
        """Get a template's text, re-reading it if the file changed.

        A template deleted after its first read keeps serving the cached
        text.

        Raises:
            FileNotFoundError: If the template was never readable
        """
        key = f"{category}/{filename}"
        path = self.prompts_dir / category / filename
        cached = self._entries.get(key)

        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            if cached is None:
                raise FileNotFoundError(f"Prompt file not found: {path}") from None
            logger.warning(f"Prompt {key} was deleted, using cached text")
            return cached[1]

        if cached is not None and mtime <= cached[0]:
            return cached[1]

        if cached is not None:
            logger.info(f"Prompt {key} changed on disk, reloading")
        text = path.read_text(encoding="utf-8")
        self._entries[key] = (mtime, text)
        return text

    def render(self, category: str, filename: str, **fields) -> str:
        """Fill a template's ``{placeholders}``.

        Raises:
            ValueError: If the template needs a field that was not given
        """
        template = self.get_prompt(category, filename).strip()
        try:
            return template.format(**fields)
        except KeyError as e:
            raise ValueError(f"Prompt {category}/{filename} needs field {e}") from e


_loader: Optional[PromptLoader] = None


def get_loader() -> PromptLoader:
    """Get the shared prompt loader."""
    global _loader
    if _loader is None:
        _loader = PromptLoader()
    return _loader
