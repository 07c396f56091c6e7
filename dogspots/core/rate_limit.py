from __future__ import annotations

import logging
import time
from collections import defaultdict, deque
from threading import Lock

from fastapi import Depends, HTTPException, Request, status

from dogspots.core.config import settings

logger = logging.getLogger(__name__)


class AuthThrottle:
    """Per-process attempt counter for the /auth endpoints."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._attempts: defaultdict[str, deque[float]] = defaultdict(deque)

    def attempt(self, key: str, *, limit: int, window_seconds: int) -> int:
        """Record an attempt; returns 0 if allowed, else seconds to wait."""

        now = time.monotonic()
        with self._lock:
            attempts = self._attempts[key]
            while attempts and attempts[0] <= now - window_seconds:
                attempts.popleft()
            if len(attempts) >= limit:
                return max(1, int(window_seconds - (now - attempts[0])) + 1)
            attempts.append(now)
            if len(self._attempts) > 10_000:
                stale = [k for k, v in self._attempts.items() if v[-1] <= now - window_seconds]
                for k in stale:
                    del self._attempts[k]
            return 0

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()


_throttle = AuthThrottle()


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return request.client.host if request.client else "unknown"


def rate_limit(scope: str):
    """Dependency limiting ``scope`` to LOGIN_RATE_LIMIT attempts per window and client."""

    def _dep(request: Request) -> None:
        key = f"{scope}:{_client_ip(request)}"
        retry_after = _throttle.attempt(
            key, limit=settings.login_rate_limit, window_seconds=settings.login_rate_window_seconds
        )
        if retry_after:
            logger.warning("Throttled %s for %ss", key, retry_after)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
                headers={"Retry-After": str(retry_after)},
            )

    return Depends(_dep)


def _reset_for_tests() -> None:
    _throttle.reset()
