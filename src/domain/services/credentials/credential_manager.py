"""Reset credential lifecycle: issue, verify, consume and peek.

A credential is a random UUIDv4 id plus a high-entropy secret. Only an
HMAC-SHA256 digest of the secret is stored, keyed with a server secret used
for nothing else. Records live in the key-value store under
``password_reset:token:<id>`` with a fixed TTL, and each account keeps a set
of its outstanding ids under ``password_reset:account:<id>`` so a successful
redemption can invalidate the others.
"""

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Optional

import structlog

from src.core.logging import mask_email
from src.domain.interfaces.infrastructure import IKeyValueStore
from src.domain.services.rate_limiting.reset_rate_limiter import ResetRateLimiter
from src.domain.value_objects.outcomes import VerificationResult
from src.domain.value_objects.rate_limit import RateLimitNamespace
from src.domain.value_objects.reset_credential import (
    CredentialId,
    IssuedCredential,
    ResetSecret,
    StoredCredential,
)

logger = structlog.get_logger(__name__)

CREDENTIAL_KEY_PREFIX = "password_reset:token:"
ACCOUNT_INDEX_KEY_PREFIX = "password_reset:account:"


def credential_key(credential_id: str) -> str:
    return f"{CREDENTIAL_KEY_PREFIX}{credential_id}"


def account_index_key(account_id: str) -> str:
    return f"{ACCOUNT_INDEX_KEY_PREFIX}{account_id}"


class CredentialManager:
    """Owns every reset credential record in the key-value store.

    The plaintext secret leaves this class exactly once, in the
    `IssuedCredential` returned by `issue`.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        rate_limiter: ResetRateLimiter,
        hmac_secret: str,
        ttl_seconds: int = 900,
        secret_bytes: int = 48,
    ):
        """Initialize with the shared store and the digest key.

        Args:
            store: Key-value store holding credential records
            rate_limiter: Limiter whose credential counter is cleared on consume
            hmac_secret: Server key for secret digests, used for nothing else
            ttl_seconds: Credential lifetime
            secret_bytes: Random bytes per secret, at least 48

        Raises:
            ValueError: If the key is empty or the secret would be too short
        """
        if not hmac_secret:
            raise ValueError("hmac_secret must not be empty")
        if secret_bytes < 48:
            raise ValueError("secret_bytes must be at least 48")

        self._store = store
        self._rate_limiter = rate_limiter
        self._hmac_key = hmac_secret.encode("utf-8")
        self._ttl_seconds = ttl_seconds
        self._secret_bytes = secret_bytes
        # Compared against on a miss so absent and present records cost the same.
        self._placeholder_digest = self._digest("0" * 64)

        logger.info("CredentialManager initialized", ttl_seconds=ttl_seconds)

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def _digest(self, secret: str) -> str:
        return hmac.new(self._hmac_key, secret.encode("utf-8"), hashlib.sha256).hexdigest()

    async def issue(self, account_id: str, contact_address: str) -> IssuedCredential:
        """Mints and stores a new credential for an account.

        Args:
            account_id: Account the credential resets
            contact_address: Address the link is sent to

        Returns:
            IssuedCredential: Id and plaintext secret for one-time disclosure
        """
        credential_id = CredentialId.generate()
        secret = ResetSecret.generate(self._secret_bytes)
        record = StoredCredential(
            account_id=account_id,
            secret_digest=self._digest(secret.value),
            contact_address=contact_address,
            issued_at=datetime.now(timezone.utc),
        )

        await self._store.set(credential_key(credential_id.value), record.to_json(), self._ttl_seconds)
        await self._store.add_to_set(account_index_key(account_id), credential_id.value, self._ttl_seconds)

        logger.info(
            "Reset credential issued",
            credential_id=credential_id.value,
            account_id=account_id,
            contact=mask_email(contact_address),
        )
        return IssuedCredential(credential_id=credential_id, secret=secret, expires_in=self._ttl_seconds)

    async def verify(self, credential_id: str, presented_secret: str) -> VerificationResult:
        """Checks a presented secret against the stored digest in constant time.

        Args:
            credential_id: Normalized credential id
            presented_secret: Secret supplied by the caller

        Returns:
            VerificationResult: valid, not_found, or mismatch

        Raises:
            CredentialDataError: If the stored record is unreadable
        """
        raw = await self._store.get(credential_key(credential_id))
        presented_digest = self._digest(presented_secret)

        if raw is None:
            hmac.compare_digest(presented_digest, self._placeholder_digest)
            return VerificationResult.not_found()

        record = StoredCredential.from_json(raw)
        if hmac.compare_digest(presented_digest.encode("ascii"), record.secret_digest.encode("ascii")):
            return VerificationResult.valid(record.account_id, record.contact_address)
        return VerificationResult.mismatch()

    async def consume(self, credential_id: str, account_id: str) -> bool:
        """Claims a credential and invalidates the account's other credentials.

        The delete of the credential record is the claim: of several
        concurrent calls for the same id, only the one whose delete removed
        the record gets True and performs the sibling cleanup.

        Args:
            credential_id: Credential that was just verified
            account_id: Account it belongs to

        Returns:
            bool: True if this call consumed the credential
        """
        removed = await self._store.delete(credential_key(credential_id))
        if removed != 1:
            logger.info("Reset credential already consumed", credential_id=credential_id)
            return False

        index_key = account_index_key(account_id)
        siblings = [s for s in await self._store.set_members(index_key) if s != credential_id]
        sibling_keys = [credential_key(s) for s in siblings]
        if sibling_keys:
            await self._store.delete(*sibling_keys)
        # Ids issued after the read above stay indexed for the next consume.
        await self._store.remove_from_set(index_key, credential_id, *siblings)

        await self._rate_limiter.clear(RateLimitNamespace.CREDENTIAL, credential_id)

        logger.info(
            "Reset credential consumed",
            credential_id=credential_id,
            account_id=account_id,
            siblings_invalidated=len(sibling_keys),
        )
        return True

    async def peek(self, credential_id: str) -> Optional[int]:
        """Returns the remaining lifetime in seconds, or None.

        None covers expired, consumed and never-issued ids alike.
        """
        remaining = await self._store.ttl(credential_key(credential_id))
        if remaining is None or remaining <= 0:
            return None
        return remaining
