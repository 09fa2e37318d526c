"""Exception types raised by the engine and its collaborators."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(eq=False)
class EngineError(Exception):
    """Base error: every rejected operation carries a code and a reason."""
    code: str
    reason: str
    details: Optional[Any] = None

    def __str__(self) -> str:
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


class InvariantViolation(EngineError, ValueError):
    """Operation would break an accounting invariant; nothing was changed."""


class AccessDenied(EngineError, PermissionError):
    """Privileged operation called by someone other than the admin."""


class TransferError(EngineError, RuntimeError):
    """Asset transfer was short or refused."""
