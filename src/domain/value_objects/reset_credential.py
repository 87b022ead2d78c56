"""Reset credential value objects.

A reset credential is split in two: the public ``CredentialId`` that names the
stored record, and the ``ResetSecret`` that is disclosed once to the requester
and only ever persisted as a keyed digest.
"""

import json
import re
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict

from src.core.exceptions import CredentialDataError


@dataclass(frozen=True, slots=True)
class CredentialId:
    """Random UUIDv4 naming one credential record.

    Raises:
        ValueError: If the value is not a canonical UUIDv4 string.
    """

    value: str

    PATTERN: ClassVar[re.Pattern] = re.compile(
        r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
    )

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise ValueError("Credential id must be a string.")
        normalized = self.value.strip().lower()
        if not self.PATTERN.match(normalized):
            raise ValueError("Credential id must be a UUIDv4.")
        object.__setattr__(self, "value", normalized)

    @classmethod
    def generate(cls) -> "CredentialId":
        return cls(str(uuid.uuid4()))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ResetSecret:
    """URL-safe base64 secret presented at redemption.

    Generated secrets carry at least 48 bytes of entropy; presented secrets
    only need to match the alphabet and length bounds before they are hashed.

    Raises:
        ValueError: If the value is outside 32-256 URL-safe characters.
    """

    value: str

    MIN_LENGTH: ClassVar[int] = 32
    MAX_LENGTH: ClassVar[int] = 256
    PATTERN: ClassVar[re.Pattern] = re.compile(r"^[A-Za-z0-9_-]+$")

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise ValueError("Secret must be a string.")
        if not (self.MIN_LENGTH <= len(self.value) <= self.MAX_LENGTH):
            raise ValueError("Secret length out of range.")
        if not self.PATTERN.match(self.value):
            raise ValueError("Secret must be URL-safe base64.")

    @classmethod
    def generate(cls, num_bytes: int = 48) -> "ResetSecret":
        return cls(secrets.token_urlsafe(num_bytes))

    def __repr__(self) -> str:
        return "ResetSecret(****)"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class IssuedCredential:
    """The pair handed back by ``issue``; the secret exists only here."""

    credential_id: CredentialId
    secret: ResetSecret
    expires_in: int


@dataclass(frozen=True, slots=True)
class StoredCredential:
    """The record persisted under a credential id.

    The JSON field names are shared with other services reading the same
    Redis keys, so they stay camelCase.
    """

    account_id: str
    secret_digest: str
    contact_address: str
    issued_at: datetime

    DIGEST_PATTERN: ClassVar[re.Pattern] = re.compile(r"^[0-9a-f]{64}$")

    def to_json(self) -> str:
        return json.dumps(
            {
                "accountId": self.account_id,
                "secretDigest": self.secret_digest,
                "contactAddress": self.contact_address,
                "issuedAt": self.issued_at.isoformat(),
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "StoredCredential":
        """Decode a stored record.

        Raises:
            CredentialDataError: If the payload is not a complete record.
        """
        try:
            data: Dict[str, Any] = json.loads(raw)
            issued_at = datetime.fromisoformat(data["issuedAt"])
            if issued_at.tzinfo is None:
                issued_at = issued_at.replace(tzinfo=timezone.utc)
            record = cls(
                account_id=str(data["accountId"]),
                secret_digest=data["secretDigest"],
                contact_address=data["contactAddress"],
                issued_at=issued_at,
            )
        except (TypeError, ValueError, KeyError) as e:
            raise CredentialDataError("Stored reset credential is unreadable") from e

        if not isinstance(record.secret_digest, str) or not cls.DIGEST_PATTERN.match(record.secret_digest):
            raise CredentialDataError("Stored reset credential has a malformed digest")
        return record
