"""Dump a directory as Markdown for LLM prompting."""

__version__ = "0.1.0"
