"""Schemas for the preference endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, StrictBool

from notifyhub.domain.entities import PreferencesUpdate, QuietHours, UserPreferences

from .base import CamelModel

CLOCK_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


class QuietHoursSchema(CamelModel):
    enabled: StrictBool
    start: str = Field(default="22:00", pattern=CLOCK_PATTERN)
    end: str = Field(default="08:00", pattern=CLOCK_PATTERN)
    timezone: str = "UTC"

    def to_entity(self) -> QuietHours:
        return QuietHours(
            enabled=self.enabled, start=self.start, end=self.end, timezone=self.timezone
        )


class PreferencesUpdateRequest(CamelModel):
    """Partial preference update; omitted sections keep their stored values."""

    user_id: str = Field(..., min_length=1)
    channels: dict[str, StrictBool] | None = None
    categories: dict[str, StrictBool] | None = None
    quiet_hours: QuietHoursSchema | None = None
    frequency: Literal["realtime", "hourly", "daily", "weekly"] | None = None

    def to_update(self) -> PreferencesUpdate:
        return PreferencesUpdate(
            channels=self.channels,
            categories=self.categories,
            quiet_hours=self.quiet_hours.to_entity() if self.quiet_hours else None,
            frequency=self.frequency,
        )


class PreferencesRead(CamelModel):
    user_id: str
    channels: dict[str, bool]
    categories: dict[str, bool]
    quiet_hours: QuietHoursSchema | None = None
    frequency: str
    updated_at: datetime

    @classmethod
    def from_entity(cls, preferences: UserPreferences) -> "PreferencesRead":
        quiet_hours = preferences.quiet_hours
        return cls(
            user_id=preferences.user_id,
            channels=preferences.channels.to_dict(),
            categories=preferences.categories.to_dict(),
            quiet_hours=QuietHoursSchema(**quiet_hours.to_dict()) if quiet_hours else None,
            frequency=preferences.frequency,
            updated_at=preferences.updated_at,
        )


class PreferencesResponse(CamelModel):
    preferences: PreferencesRead


class PreferencesUpdateResponse(CamelModel):
    success: bool = True
    preferences: PreferencesRead
    message: str = "Preferences updated successfully"


__all__ = [
    "PreferencesRead",
    "PreferencesResponse",
    "PreferencesUpdateRequest",
    "PreferencesUpdateResponse",
    "QuietHoursSchema",
]
