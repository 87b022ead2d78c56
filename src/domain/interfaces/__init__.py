"""Domain Interfaces for dependency inversion.

These interfaces define contracts that infrastructure layers must implement,
keeping the reset protocol independent of Redis, SQL and SMTP.
"""

from .email import IResetDispatcher
from .infrastructure import IKeyValueStore
from .repositories import IAccountRepository, IAuditStore

__all__ = [
    "IAccountRepository",
    "IAuditStore",
    "IKeyValueStore",
    "IResetDispatcher",
]
