"""GemChat: a terminal chat client for Gemini with locally saved conversations."""

__version__ = "0.1.0"
