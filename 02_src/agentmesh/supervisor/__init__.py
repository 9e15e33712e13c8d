"""Supervisor module."""

from .supervisor import AgentFactory, ChildHandle, Supervisor

__all__ = ["AgentFactory", "ChildHandle", "Supervisor"]
