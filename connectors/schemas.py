"""
Pydantic schemas shared by the OAuth client, the connectors and the API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

# lowercase currency code -> {"confirmed": amount}
Balance = Dict[str, Dict[str, str]]


def _from_epoch(seconds: float) -> datetime:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"Timestamp out of range: {seconds!r}") from exc


def to_utc_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce an absolute time point into an aware UTC ``datetime``.

    Accepts ``datetime`` (naive values are taken as UTC), epoch seconds
    (int, float or numeric string) and ISO-8601 strings.  ``None`` and
    empty strings give ``None``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            seconds = float(text)
        except ValueError:
            pass
        else:
            return _from_epoch(seconds)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return to_utc_datetime(datetime.fromisoformat(text))
    raise ValueError(f"Not a timestamp: {value!r}")


# ═══════════════════════════════════════════════════════════════════════════════
# Tokens & credentials
# ═══════════════════════════════════════════════════════════════════════════════


class Token(BaseModel):
    """Result of an authorization-code or refresh-token grant."""

    access_token: str
    refresh_token: str
    expires_at: datetime  # absolute, UTC
    token_type: str = "bearer"
    scope: Optional[str] = None

    def as_fields(self) -> Dict[str, str]:
        """The credential fields a grant updates, serialized for the host."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "access_token_expires": self.expires_at.isoformat(),
        }


class Credential(BaseModel):
    """
    Stored credential fields for one account.

    ``access_token_expires`` is always an absolute instant; durations are
    converted by the OAuth client before they ever reach this model.
    """

    api_code: str = ""
    access_token: str = ""
    refresh_token: str = ""
    access_token_expires: Optional[datetime] = None

    @field_validator("access_token_expires", mode="before")
    @classmethod
    def _absolute_expiry(cls, value: Any) -> Optional[datetime]:
        return to_utc_datetime(value)

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "Credential":
        return cls.model_validate(dict(fields))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.access_token_expires is None:
            return True
        return (now or datetime.now(timezone.utc)) >= self.access_token_expires

    def to_fields(self) -> Dict[str, str]:
        return {
            "api_code": self.api_code,
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "access_token_expires": (
                self.access_token_expires.isoformat() if self.access_token_expires else ""
            ),
        }


class FieldSpec(BaseModel):
    """Schema of one credential field as shown by the host framework."""

    title: str
    regexp: Optional[str] = None
    interaction: bool = False


# ═══════════════════════════════════════════════════════════════════════════════
# Interactive authorization
# ═══════════════════════════════════════════════════════════════════════════════


class InteractionState(str, Enum):
    NEED_AUTHORIZATION = "need_authorization"
    AWAITING_CALLBACK = "awaiting_callback"
    AUTHORIZED = "authorized"


class InteractionRequest(BaseModel):
    """Query parameters of an interaction request (first call or provider callback)."""

    code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @classmethod
    def from_query(cls, query: Mapping[str, Any]) -> "InteractionRequest":
        known = {k: query[k] for k in cls.model_fields if query.get(k)}
        return cls(**known)


class InteractionResult(BaseModel):
    state: InteractionState
    redirect_url: Optional[str] = None
    fields: Optional[Dict[str, str]] = Field(default=None)

    @property
    def pending(self) -> bool:
        """True while the user still has to visit ``redirect_url``."""
        return self.fields is None
