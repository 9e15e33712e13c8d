"""Transport module."""

from .bus import SUBJECT_PREFIX, InProcessBus, ITransport, SubjectHandler, agent_subject

__all__ = [
    "SUBJECT_PREFIX",
    "InProcessBus",
    "ITransport",
    "SubjectHandler",
    "agent_subject",
]
