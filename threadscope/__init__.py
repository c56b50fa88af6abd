"""Discord channel relevance filtering, conversation threading and analysis."""

__version__ = "0.1.0"
