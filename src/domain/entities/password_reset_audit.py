from datetime import datetime, timezone  # For timestamp fields
from typing import Any, Dict, Optional  # For optional fields
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime  # For explicit column types
from sqlalchemy.dialects import postgresql  # JSONB on PostgreSQL
from sqlmodel import Column, Field, Index, SQLModel, String  # For ORM and table definition


class PasswordResetAudit(SQLModel, table=True):
    """Append-only record of one reset protocol decision.

    Rows are inserted once and never updated or deleted by this service.

    Attributes:
        id: Row identifier.
        correlation_id: Request-scoped id shared with the structured logs.
        account_id: Account the decision concerned; null when unknown.
        request_ip: Caller address as seen by the API.
        outcome: One of the AuditOutcome values.
        meta: Small structured payload, e.g. the credential id.
        requested_at: When the decision was made.
    """

    __tablename__ = "password_resets_audit"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    correlation_id: str = Field(
        sa_column=Column(String(64), nullable=False, index=True),
        description="Request correlation id.",
    )
    account_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Account concerned, when known.",
    )
    request_ip: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Caller address.",
    )
    outcome: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Protocol decision.",
    )
    meta: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),
        description="Structured decision details.",
    )
    requested_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Decision timestamp.",
    )

    __table_args__ = (
        Index("ix_password_resets_audit_account_id", "account_id"),
        Index("ix_password_resets_audit_requested_at", "requested_at"),
        {"extend_existing": True},
    )
