"""Owner-scoped accessors over the managed relational store.

Accessors only flush; services own commits and rollbacks.
"""

from .candidates import CandidateCreate, CandidateStore
from .profiles import UserProfileStore
from .sources import SourceMessageStore, SourceSnippet
from .tasks import TaskCreate, TaskFilters, TaskStore

__all__ = [
    "CandidateCreate",
    "CandidateStore",
    "SourceMessageStore",
    "SourceSnippet",
    "TaskCreate",
    "TaskFilters",
    "TaskStore",
    "UserProfileStore",
]
