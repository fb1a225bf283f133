"""Security utilities: PII redaction for logs, fixed-window rate limiting."""
import json
import re
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

import structlog

from catalyst.backend.config import SMTPSettings

log = structlog.get_logger()


# --- PII Redaction (Simple Pattern-Based) ---

PII_PATTERNS = {
    "email": r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b",
    "phone": r"\+?\d[\d\s().-]{6,}\d",
}


def redact_pii_simple(text: str) -> str:
    redacted = text
    for pii_type, pattern in PII_PATTERNS.items():
        redacted = re.sub(pattern, f"[{pii_type.upper()}_REDACTED]", redacted, flags=re.IGNORECASE)
    return redacted


def sanitize_for_logging(data: Any, max_length: int = 500) -> str:
    """Sanitize data for safe logging (redact PII, truncate)."""
    try:
        text = json.dumps(data) if not isinstance(data, str) else data
    except (TypeError, ValueError):
        return "[UNSERIALIZABLE]"
    redacted = redact_pii_simple(text)
    if len(redacted) > max_length:
        redacted = redacted[:max_length] + "... [truncated]"
    return redacted


def redact_smtp_config(smtp: SMTPSettings) -> Dict[str, Any]:
    """SMTP settings safe to log: never the user name or password themselves."""
    return {
        "host": smtp.host,
        "port": smtp.port,
        "secure": smtp.secure,
        "userSet": bool(smtp.user),
        "passSet": bool(smtp.password),
    }


# --- Rate Limiting ---


class FixedWindowRateLimiter:
    """Counts hits per key inside fixed windows of ``window_seconds``.

    State is per-process and shared by all requests. Expired windows are
    swept at most once per window length, so the map only holds keys seen
    in roughly the last two windows.
    """

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # {key: (window_start, count)}
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_cleanup = clock()

    def _cleanup_expired(self, now: float) -> None:
        # caller holds the lock
        expired = [key for key, (start, _) in self._windows.items() if now - start >= self.window_seconds]
        for key in expired:
            del self._windows[key]
        self._last_cleanup = now
        if expired:
            log.debug("rate_limit_windows_evicted", evicted=len(expired), tracked=len(self._windows))

    def hit(self, key: str) -> bool:
        """Record one request; False when the key is over its limit."""
        now = self._clock()
        with self._lock:
            if now - self._last_cleanup >= self.window_seconds:
                self._cleanup_expired(now)
            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0
            if count >= self.max_requests:
                self._windows[key] = (start, count)
                log.warning("rate_limited", key=key, limit=self.max_requests, window=self.window_seconds)
                return False
            self._windows[key] = (start, count + 1)
            return True

    def retry_after(self, key: str) -> int:
        with self._lock:
            start, _ = self._windows.get(key, (self._clock(), 0))
        return max(0, int(self.window_seconds - (self._clock() - start)) + 1)

    def usage(self, key: str) -> Dict[str, int]:
        """Hits counted for ``key`` in its current window, and what is left."""
        now = self._clock()
        with self._lock:
            start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window_seconds:
            count = 0
        return {
            "usage": count,
            "limit": self.max_requests,
            "remaining": max(0, self.max_requests - count),
        }

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)
