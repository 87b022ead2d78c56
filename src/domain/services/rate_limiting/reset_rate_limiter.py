"""Rate limiting for the password reset flows.

Three counters are enforced independently: per caller address and per account
on the request flow, and per credential id on the redemption flow. Each check
is a single atomic check-and-increment in the shared key-value store.
"""

from typing import Dict, Optional

import structlog

from src.core.logging import mask_ip_address
from src.domain.interfaces.infrastructure import IKeyValueStore
from src.domain.value_objects.rate_limit import RateLimitNamespace, RateLimitRule

logger = structlog.get_logger(__name__)


class ResetRateLimiter:
    """Fixed-window limiter over an `IKeyValueStore`.

    When the store fails, the namespace's rule decides the answer: fail-open
    rules allow the request, fail-closed rules deny it. Either way the fault
    is logged.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        rules: Dict[RateLimitNamespace, RateLimitRule],
    ):
        """Initialize with the shared store and one rule per namespace.

        Args:
            store: Key-value store providing the atomic counter primitive
            rules: Rule for each of the three namespaces

        Raises:
            ValueError: If a namespace has no rule
        """
        missing = [namespace.name for namespace in RateLimitNamespace if namespace not in rules]
        if missing:
            raise ValueError(f"Missing rate limit rules for: {', '.join(missing)}")

        self._store = store
        self._rules = dict(rules)

        logger.info(
            "ResetRateLimiter initialized",
            rules={ns.name: f"{rule.limit}/{rule.window_seconds}s" for ns, rule in self._rules.items()},
        )

    def rule_for(self, namespace: RateLimitNamespace) -> RateLimitRule:
        return self._rules[namespace]

    async def check_and_increment(
        self,
        namespace: RateLimitNamespace,
        identity: str,
        limit: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ) -> bool:
        """Counts one request against `identity` and reports whether it is allowed.

        Args:
            namespace: Which counter family to use
            identity: Caller address, account id, or credential id
            limit: Override of the namespace rule's limit
            window_seconds: Override of the namespace rule's window

        Returns:
            bool: True if the request is within the limit
        """
        rule = self._rules[namespace]
        key = namespace.key_for(identity)
        try:
            allowed = await self._store.check_and_increment(
                key,
                limit if limit is not None else rule.limit,
                window_seconds if window_seconds is not None else rule.window_seconds,
            )
        except Exception as e:
            logger.error(
                "Rate limit store unavailable",
                namespace=namespace.name,
                error=str(e),
                error_type=type(e).__name__,
                fail_open=rule.fail_open,
            )
            return rule.fail_open

        if not allowed:
            logger.warning(
                "Rate limit exceeded",
                namespace=namespace.name,
                identity=self._loggable(namespace, identity),
            )
        return allowed

    async def allow_caller(self, caller_address: str) -> bool:
        return await self.check_and_increment(RateLimitNamespace.CALLER_ADDRESS, caller_address)

    async def allow_account(self, account_id: str) -> bool:
        return await self.check_and_increment(RateLimitNamespace.ACCOUNT, account_id)

    async def allow_credential_attempt(self, credential_id: str) -> bool:
        return await self.check_and_increment(RateLimitNamespace.CREDENTIAL, credential_id)

    async def clear(self, namespace: RateLimitNamespace, identity: str) -> None:
        """Drops a counter early. Failures are logged and ignored."""
        try:
            await self._store.delete(namespace.key_for(identity))
        except Exception as e:
            logger.warning(
                "Failed to clear rate limit counter",
                namespace=namespace.name,
                error=str(e),
            )

    @staticmethod
    def _loggable(namespace: RateLimitNamespace, identity: str) -> str:
        if namespace is RateLimitNamespace.CALLER_ADDRESS:
            return mask_ip_address(identity)
        return identity
