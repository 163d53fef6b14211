"""Sandbox demo data."""

from .sandbox import SANDBOX_AGENTS, SANDBOX_CONVERSATIONS, ISandbox, Sandbox

__all__ = ["Sandbox", "ISandbox", "SANDBOX_AGENTS", "SANDBOX_CONVERSATIONS"]
