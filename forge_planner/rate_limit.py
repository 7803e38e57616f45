"""Per-user request throttling for expensive generation calls."""

import math
import threading
import time
from typing import Callable, Dict, Optional

from .config import config


class RequestThrottled(RuntimeError):
    """A user made a request before the cooldown elapsed."""

    def __init__(self, user_id: str, wait_seconds: int):
        super().__init__(f"Please wait {wait_seconds}s before generating again")
        self.user_id = user_id
        self.wait_seconds = wait_seconds


class RequestThrottle:
    """Enforce a minimum interval between requests from the same user.

    The clock is injectable so callers (and tests) control time.
    """

    def __init__(self, cooldown_seconds: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.cooldown_seconds = config.REQUEST_COOLDOWN_SECONDS if cooldown_seconds is None else cooldown_seconds
        self.clock = clock
        self._last_request: Dict[str, float] = {}
        self._lock = threading.Lock()

    def remaining(self, user_id: str) -> float:
        with self._lock:
            last = self._last_request.get(user_id)
            if last is None:
                return 0.0
            return max(0.0, self.cooldown_seconds - (self.clock() - last))

    def check(self, user_id: str):
        """Record a request, raising RequestThrottled inside the cooldown window."""
        with self._lock:
            now = self.clock()
            last = self._last_request.get(user_id)
            if last is not None and now - last < self.cooldown_seconds:
                raise RequestThrottled(user_id, math.ceil(self.cooldown_seconds - (now - last)))
            self._last_request[user_id] = now

    def reset(self, user_id: Optional[str] = None):
        with self._lock:
            if user_id is None:
                self._last_request.clear()
            else:
                self._last_request.pop(user_id, None)
