from datetime import datetime  # For timestamp fields
from typing import Optional  # For optional fields

from sqlalchemy import DateTime, text  # For SQL expressions and explicit DateTime type
from sqlmodel import Column, Field, Index, SQLModel, String  # For ORM and table definition


class Account(SQLModel, table=True):
    """Represents an account record in the system of record.

    The reset protocol reads accounts by normalized email or id and writes
    only the password hash; every other attribute belongs to the services
    that manage signup and profiles.

    Attributes:
        id: Opaque account identifier (primary key).
        email: Unique, normalized (trimmed, lower-cased) email address.
        name: Display name used in outbound messages.
        hashed_password: Argon2 hash of the current password.
        is_active: Inactive accounts are never issued reset credentials.
        updated_at: The timestamp of the last password change.
    """

    __tablename__ = "users"  # Shared with the account service

    id: str = Field(
        sa_column=Column(String(64), primary_key=True),
        description="Opaque account identifier.",
    )
    email: str = Field(
        sa_column=Column(String(254), unique=True, index=True, nullable=False),  # Unique, indexed column
        description="Unique, normalized email address.",
    )
    name: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Display name used when addressing the account holder.",
    )
    hashed_password: Optional[str] = Field(
        default=None,
        max_length=255,  # Sufficient for argon2 encoded hashes
        description="Argon2-hashed password.",
    )
    is_active: bool = Field(
        default=True,
        description="Inactive accounts are treated as absent by the reset flow.",
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True),  # Explicit DateTime type for Alembic
            server_onupdate=text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        description="The timestamp of the last update to the account record.",
    )

    __table_args__ = (
        Index("ix_users_email_lower", text("lower(email)")),  # Case-insensitive index
        {"extend_existing": True},
    )

    @property
    def display_name(self) -> str:
        """Name used in greetings, falling back to the mailbox name."""
        return self.name or self.email.split("@", 1)[0]
