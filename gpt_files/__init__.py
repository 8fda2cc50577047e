"""Manage files and vector stores attached to OpenAI assistants."""

__version__ = "0.1.0"
