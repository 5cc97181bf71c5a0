"""
Fixed-window, in-memory rate limiting with named buckets.
Each bucket has its own request budget and window; clients are keyed by user ID
when authenticated and by IP address otherwise.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple
import logging
import time

from fastapi import Depends, Request

from app.config import settings
from app.models.user import User
from app.utils.dependencies import get_optional_current_user
from app.utils.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    requests: int
    window_seconds: int


RATE_LIMITS: Dict[str, RateLimitRule] = {
    "auth": RateLimitRule(requests=10, window_seconds=15 * 60),
    "ai-search": RateLimitRule(requests=30, window_seconds=60 * 60),
    "property-create": RateLimitRule(requests=50, window_seconds=24 * 60 * 60),
    "appointment": RateLimitRule(requests=20, window_seconds=24 * 60 * 60),
    "favorite": RateLimitRule(requests=100, window_seconds=60 * 60),
    "default": RateLimitRule(requests=100, window_seconds=60 * 60),
}


class RateLimiter:
    """Counts hits per (bucket, client) inside fixed windows."""

    def __init__(self, rules: Optional[Dict[str, RateLimitRule]] = None):
        self.rules = dict(rules or RATE_LIMITS)
        self.request_counts: Dict[Tuple[str, str], Dict[str, float]] = {}

    def get_rule(self, bucket: str) -> RateLimitRule:
        return self.rules.get(bucket, self.rules["default"])

    def hit(self, bucket: str, key: str, now: Optional[float] = None) -> int:
        """
        Record one request.

        Args:
            bucket: Rate limit bucket name
            key: Client identifier (user ID or IP)
            now: Current timestamp, defaults to time.time()

        Returns:
            Remaining requests in the current window

        Raises:
            RateLimitExceededError: If the bucket budget is exhausted
        """
        rule = self.get_rule(bucket)
        current_time = time.time() if now is None else now

        self._clean_expired(current_time)

        client_data = self.request_counts.setdefault(
            (bucket, key), {"count": 0, "window_start": current_time}
        )

        if current_time - client_data["window_start"] >= rule.window_seconds:
            client_data["count"] = 0
            client_data["window_start"] = current_time

        if client_data["count"] >= rule.requests:
            retry_after = int(rule.window_seconds - (current_time - client_data["window_start"]))
            logger.warning(f"Rate limit exceeded for {bucket}:{key}")
            raise RateLimitExceededError(max(retry_after, 1))

        client_data["count"] += 1
        return rule.requests - int(client_data["count"])

    def reset(self) -> None:
        self.request_counts.clear()

    def _clean_expired(self, current_time: float) -> None:
        expired = [
            entry for entry, data in self.request_counts.items()
            if current_time - data["window_start"] > self.get_rule(entry[0]).window_seconds * 2
        ]
        for entry in expired:
            del self.request_counts[entry]


rate_limiter = RateLimiter()


def get_client_ip(request: Request) -> str:
    """Client IP, honouring proxy headers."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


def rate_limit(bucket: str = "default"):
    """
    Create a dependency that enforces a rate limit bucket.

    Args:
        bucket: Bucket name from RATE_LIMITS

    Returns:
        Dependency function
    """
    async def rate_limit_dependency(
        request: Request,
        current_user: Optional[User] = Depends(get_optional_current_user)
    ) -> None:
        if not settings.rate_limit_enabled:
            return
        key = f"user:{current_user.id}" if current_user else f"ip:{get_client_ip(request)}"
        rate_limiter.hit(bucket, key)

    return rate_limit_dependency
