from __future__ import annotations
"""Prompt template manager — loads writer prompts from files, per style preset."""

import logging
from pathlib import Path
from typing import ClassVar

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"
DEFAULT_STYLE = "default"


class PromptManager:
    """Load and cache prompt templates from the filesystem.

    Templates are organized by style:
        prompts/templates/{style}/{template_name}.txt

    A style only needs the templates it overrides; everything else comes
    from 'default'.
    """

    _cache: ClassVar[dict[str, str]] = {}

    @classmethod
    def get_prompt(cls, template_name: str, style: str | None = None) -> str:
        """Get a prompt template by name and style.

        Raises:
            KeyError: If neither the style nor 'default' has the template.
        """
        style = style or DEFAULT_STYLE
        cache_key = f"{style}/{template_name}"
        if cache_key in cls._cache:
            return cls._cache[cache_key]

        path = _TEMPLATES_DIR / style / f"{template_name}.txt"
        if not path.exists() and style != DEFAULT_STYLE:
            path = _TEMPLATES_DIR / DEFAULT_STYLE / f"{template_name}.txt"

        if not path.exists():
            logger.error("Prompt template not found: %s/%s.txt", style, template_name)
            raise KeyError(template_name)

        text = path.read_text(encoding="utf-8").strip()
        cls._cache[cache_key] = text
        return text

    @classmethod
    def reload(cls) -> None:
        cls._cache.clear()
        logger.info("Prompt template cache cleared.")

    @classmethod
    def list_styles(cls) -> list[str]:
        if not _TEMPLATES_DIR.exists():
            return [DEFAULT_STYLE]
        return sorted(d.name for d in _TEMPLATES_DIR.iterdir() if d.is_dir())

    @classmethod
    def list_templates(cls, style: str = DEFAULT_STYLE) -> list[str]:
        style_dir = _TEMPLATES_DIR / style
        if not style_dir.exists():
            return []
        return sorted(f.stem for f in style_dir.glob("*.txt"))
