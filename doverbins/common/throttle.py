"""
Simple process-wide throttler for calls to the council website.
"""

import os
import random
import threading
import time

_lock = threading.Lock()
_last_call: dict[str, float] = {}


def throttle(key: str, min_seconds: float = 0.5, max_seconds: float | None = None) -> None:
    """
    Enforce a minimum delay between calls sharing the same key (process-wide).
    With max_seconds unset the delay is fixed at min_seconds.
    """
    if os.getenv("THROTTLE_DISABLED") == "1":
        return
    if max_seconds is None or max_seconds <= min_seconds:
        delay = min_seconds
    else:
        delay = random.uniform(min_seconds, max_seconds)
    with _lock:
        now = time.monotonic()
        last = _last_call.get(key)
        if last is not None:
            wait_for = (last + delay) - now
            if wait_for > 0:
                time.sleep(wait_for)
                now = time.monotonic()
        _last_call[key] = now


def reset(key: str | None = None) -> None:
    with _lock:
        if key is None:
            _last_call.clear()
        else:
            _last_call.pop(key, None)
