"""Password check shared by the CLI and the HTTP front ends."""

from .gate import AccessDeniedError, PasswordGate

__all__ = ["AccessDeniedError", "PasswordGate"]
