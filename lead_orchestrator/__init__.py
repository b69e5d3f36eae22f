"""Conversational lead-qualification orchestrator with one-time operator handoff."""

__version__ = "0.1.0"
