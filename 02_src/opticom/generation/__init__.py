"""Generation module."""

from .driver import GenerationDriver, IGenerationDriver
from .prompts import opening_message, parse_reply
from .styles import ArchetypeStylePolicy, StylePolicy

__all__ = [
    "GenerationDriver",
    "IGenerationDriver",
    "StylePolicy",
    "ArchetypeStylePolicy",
    "opening_message",
    "parse_reply",
]
