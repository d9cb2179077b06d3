"""Hearth - long-term memory for a conversational companion."""

__version__ = "0.1.0"
