"""
Password hashing, bearer tokens, login lockout and input sanitisation.

Tokens are HS256 JWTs carrying the user's ``id`` and ``email``.  The lockout
tracker is in-process state, like the rate limiter: it resets on restart.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import jwt
from bs4 import BeautifulSoup
from werkzeug.security import check_password_hash, generate_password_hash

from paperforum.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    return check_password_hash(password_hash, password)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

class InvalidTokenError(Exception):
    """Raised when a bearer token is malformed, tampered with or expired."""


def create_access_token(user_id: int, email: str, expires_hours: Optional[int] = None) -> str:
    """Sign a token for *user_id* that expires after ``TOKEN_EXPIRE_HOURS``."""
    hours = settings.TOKEN_EXPIRE_HOURS if expires_hours is None else expires_hours
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "email": email,
        "iat": now,
        "exp": now + timedelta(hours=hours),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    if "id" not in payload:
        raise InvalidTokenError("Token payload has no user id")
    return payload


# ---------------------------------------------------------------------------
# Login lockout
# ---------------------------------------------------------------------------

@dataclass
class _FailedLogins:
    count: int = 0
    last_failure: float = 0.0
    locked_until: Optional[float] = None


class LoginAttemptTracker:
    """
    Counts failed logins per identifier (the email address).

    After ``max_attempts`` failures the identifier is locked for
    ``lockout_seconds``.  A failure recorded after the lock has expired
    starts a fresh count.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        lockout_seconds: int = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self._clock = clock
        self._records: Dict[str, _FailedLogins] = {}

    def record_failure(self, identifier: str) -> bool:
        """Record a failed attempt. Returns False if the identifier was already locked."""
        now = self._clock()
        record = self._records.get(identifier)

        if record and record.locked_until is not None and now < record.locked_until:
            return False

        if record is None or (record.locked_until is not None and now >= record.locked_until):
            self._records[identifier] = _FailedLogins(count=1, last_failure=now)
            record = self._records[identifier]
        else:
            record.count += 1
            record.last_failure = now

        if record.count >= self.max_attempts:
            record.locked_until = now + self.lockout_seconds
            logger.warning("Login locked for %s after %d failed attempts", identifier, record.count)
        return True

    def clear(self, identifier: str) -> None:
        self._records.pop(identifier, None)

    def lock_status(self, identifier: str) -> Optional[int]:
        """Seconds remaining on the lock, or None when the identifier is not locked."""
        record = self._records.get(identifier)
        if record is None or record.locked_until is None:
            return None

        now = self._clock()
        if now >= record.locked_until:
            del self._records[identifier]
            return None
        return math.ceil(record.locked_until - now)

    def failed_attempts(self, identifier: str) -> int:
        record = self._records.get(identifier)
        return record.count if record else 0

    def remaining_attempts(self, identifier: str) -> int:
        return max(0, self.max_attempts - self.failed_attempts(identifier))

    def sweep(self) -> int:
        """
        Drop expired locks and failure counts idle for longer than the
        lockout period.  Returns the number of records removed.
        """
        now = self._clock()
        stale = [
            identifier
            for identifier, record in self._records.items()
            if (record.locked_until is not None and now >= record.locked_until)
            or (record.locked_until is None and now - record.last_failure >= self.lockout_seconds)
        ]
        for identifier in stale:
            del self._records[identifier]
        return len(stale)

    def __len__(self) -> int:
        return len(self._records)

    def reset(self) -> None:
        self._records.clear()


login_tracker = LoginAttemptTracker(
    max_attempts=settings.MAX_LOGIN_ATTEMPTS,
    lockout_seconds=settings.LOGIN_LOCKOUT_SECONDS,
)


# ---------------------------------------------------------------------------
# Sanitisation
# ---------------------------------------------------------------------------

def sanitize_text(value: Optional[str]) -> Optional[str]:
    """
    Strip every HTML tag from *value*, keeping the text content.
    Script and style bodies are dropped along with their tags.
    """
    if value is None:
        return None
    if "<" not in value:
        return value
    soup = BeautifulSoup(value, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return soup.get_text()


def sanitize_value(value: Any) -> Any:
    """Recursively sanitise strings inside lists and dicts."""
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, list):
        return [sanitize_value(item) for item in value]
    if isinstance(value, dict):
        return {key: sanitize_value(item) for key, item in value.items()}
    return value


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' 'unsafe-eval'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; "
        "font-src 'self' data:; "
        "frame-ancestors 'none';"
    ),
}
