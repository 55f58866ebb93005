"""
models.py – Record types shared by the stores and the UI.

  Device            – a full device record, secrets included.
  DevicePublicView  – the non-sensitive projection rendered in the table.
  ErrorCode         – every way a store operation can fail.
  StoreResult       – the value returned by store operations.

Store operations never raise on bad input or file errors; they return a
StoreResult so the UI layer can report problems without duplicating
validation rules.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Optional

from config import DEFAULT_STATUS


class DevicePublicView(NamedTuple):
    """The columns of a device that may be shown to the user."""
    id: int
    name: str
    app_id: str
    status: str


@dataclass
class Device:
    """
    A homebrew device record.

    saved_cpn and security_key are excluded from repr() so that a device
    never ends up in a log line or a traceback with its secrets.  Either
    may be None for an imported record that did not carry it; a None
    secret never matches.
    """
    id: int
    name: str
    app_id: str
    saved_cpn: Optional[str] = field(repr=False)
    security_key: Optional[str] = field(repr=False)
    status: str = DEFAULT_STATUS

    def public_view(self) -> DevicePublicView:
        return DevicePublicView(self.id, self.name, self.app_id, self.status)

    def matches_secret(self, secret: str) -> bool:
        """True when *secret* equals either the saved CPN or the security key."""
        if secret is None:
            return False
        return secret in (self.saved_cpn, self.security_key)

    def to_dict(self) -> dict:
        """Serialise using the key names of the devices file."""
        return {
            "id":          self.id,
            "name":        self.name,
            "appId":       self.app_id,
            "savedCPN":    self.saved_cpn,
            "securityKey": self.security_key,
            "status":      self.status,
        }


class ErrorCode(Enum):
    INVALID_INPUT      = "InvalidInput"
    DUPLICATE_USERNAME = "DuplicateUsername"
    WRONG_PASSWORD     = "WrongPassword"
    INVALID_CPN        = "InvalidCPN"
    NOT_FOUND          = "NotFound"
    ACCESS_DENIED      = "AccessDenied"
    IO_FAILURE         = "IOFailure"


@dataclass
class StoreResult:
    """
    Outcome of a store operation.

    Attributes
    ----------
    value : Any
        The record(s) produced by the operation.  Also set on an IO_FAILURE
        raised while persisting, because the in-memory change is kept.
    error : ErrorCode or None
        None on success.
    message : str
        Human-readable explanation, shown as-is by the UI.
    field : str or None
        Name of the input field that caused the failure, if any.  Used by
        the UI to focus the right Entry widget.
    """
    value: Any = None
    error: Optional[ErrorCode] = None
    message: str = ""
    field: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def unsaved(self) -> bool:
        """True when the change was applied in memory but not written to disk."""
        return self.error is ErrorCode.IO_FAILURE and self.value is not None

    @classmethod
    def success(cls, value: Any = None, message: str = "") -> "StoreResult":
        return cls(value=value, message=message)

    @classmethod
    def failure(
        cls,
        error: ErrorCode,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
    ) -> "StoreResult":
        return cls(value=value, error=error, message=message, field=field)
