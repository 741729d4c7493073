"""Result envelope returned by every tool."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import UNSUPPORTED_CAPABILITY_MESSAGE


@dataclass(frozen=True, slots=True)
class ToolResult:
    """``{success, action, message, data?, error?}``.

    A failed result always carries ``error`` and never ``data``; a successful
    result never carries ``error``. Use the ``ok``/``failure`` constructors.
    """

    success: bool
    action: str
    message: str
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, action: str, message: str, data: Any = None) -> ToolResult:
        return cls(success=True, action=action, message=message, data=data)

    @classmethod
    def failure(cls, action: str, message: str, error: str | None = None) -> ToolResult:
        return cls(success=False, action=action, message=message, error=error or message)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success, "action": self.action, "message": self.message}
        if self.success:
            if self.data is not None:
                out["data"] = self.data
        else:
            out["error"] = self.error
        return out


def soft_unsupported(action: str, note: str, **empty: Any) -> ToolResult:
    """Success-shaped answer for a read-only capability the provider lacks."""
    data: dict[str, Any] = dict(empty)
    data["note"] = note
    return ToolResult.ok(action, UNSUPPORTED_CAPABILITY_MESSAGE, data)
