"""Request-scoped services built on the store accessors.

Services are constructed per request from an ``AsyncSession`` and own the
transaction boundaries.
"""

from .feed import DEFAULT_UPCOMING_LIMIT, Feed, FeedService, FeedStatus
from .lifecycle import CandidateLifecycleService, ConfirmResult, build_task_input
from .profiles import UserProfileService
from .tasks import TaskService

__all__ = [
    "DEFAULT_UPCOMING_LIMIT",
    "CandidateLifecycleService",
    "ConfirmResult",
    "Feed",
    "FeedService",
    "FeedStatus",
    "TaskService",
    "UserProfileService",
    "build_task_input",
]
