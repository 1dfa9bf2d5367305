"""Film Studio backend — AI-assisted film pre-production."""

__version__ = "0.1.0"
