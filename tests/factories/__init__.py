"""Re-export factories and in-memory fakes used across the test suite."""

# flake8: noqa: F401 – re-export

from .account import create_fake_account
from .fakes import FakeAccountRepository, FakeAuditStore, RecordingDispatcher

__all__ = [
    "create_fake_account",
    "FakeAccountRepository",
    "FakeAuditStore",
    "RecordingDispatcher",
]
