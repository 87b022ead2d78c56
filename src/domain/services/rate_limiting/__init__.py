from .reset_rate_limiter import ResetRateLimiter

__all__ = ["ResetRateLimiter"]
