"""System prompt templates for the script writer, grouped by style preset."""

from filmstudio.prompts.manager import PromptManager

__all__ = ["PromptManager"]
