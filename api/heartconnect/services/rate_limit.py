import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException

from ..auth.deps import get_current_user


@dataclass
class RateDecision:
    allowed: bool
    retry_after_seconds: int


class SlidingWindowLimiter:
    """Per-key sliding window of request timestamps, safe across threadpool workers."""

    def __init__(self) -> None:
        self._events: dict[str, deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def check(self, key: str, limit: int, window_seconds: int, now: float | None = None) -> RateDecision:
        now = time.time() if now is None else now
        cutoff = now - window_seconds
        with self._lock:
            dq = self._events[key]
            while dq and dq[0] <= cutoff:
                dq.popleft()
            if len(dq) >= limit:
                retry_after = max(1, int(dq[0] + window_seconds - now))
                return RateDecision(allowed=False, retry_after_seconds=retry_after)
            dq.append(now)
            return RateDecision(allowed=True, retry_after_seconds=0)

    def reset(self) -> None:
        with self._lock:
            self._events.clear()


limiter = SlidingWindowLimiter()


def user_rate_limit(route_key: str, limit: int, window_seconds: int):
    """Burst guard keyed on the authenticated user rather than the client address."""

    def _dep(current_user: dict[str, Any] = Depends(get_current_user)) -> None:
        decision = limiter.check(f"{route_key}:{current_user['id']}", limit=limit, window_seconds=window_seconds)
        if not decision.allowed:
            raise HTTPException(
                status_code=429,
                detail=f"Too many requests. Retry in {decision.retry_after_seconds}s",
                headers={"Retry-After": str(decision.retry_after_seconds)},
            )

    return Depends(_dep)
