"""Password check consulted before privileged operations."""

from __future__ import annotations

import hmac
from typing import Optional


class AccessDeniedError(PermissionError):
    """Raised when a privileged operation is attempted with a wrong password."""


class PasswordGate:
    """Holds the configured secret; an unset secret leaves privileged operations open."""

    def __init__(self, secret: Optional[str]) -> None:
        self._secret = secret

    @property
    def enabled(self) -> bool:
        return bool(self._secret)

    def verify(self, candidate: Optional[str]) -> bool:
        if not self.enabled:
            return True
        if candidate is None:
            return False
        return hmac.compare_digest(candidate.encode("utf-8"), self._secret.encode("utf-8"))

    def require(self, candidate: Optional[str], action: str) -> None:
        if not self.verify(candidate):
            raise AccessDeniedError(f"Incorrect password for {action}")
