from .account_repository import AccountRepository
from .audit_repository import AuditRepository

__all__ = ["AccountRepository", "AuditRepository"]
