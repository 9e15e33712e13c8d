"""Agent module."""

from .actor import AgentActor, MailboxItem

__all__ = ["AgentActor", "MailboxItem"]
