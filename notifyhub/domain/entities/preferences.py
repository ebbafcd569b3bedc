"""Domain entities describing per-user delivery preferences."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Any, Final, Literal, Mapping

from notifyhub.domain.exceptions import NotificationValidationError
from notifyhub.utils import isoformat, parse_clock, parse_datetime, resolve_timezone, utc_now

Frequency = Literal["realtime", "hourly", "daily", "weekly"]

FREQUENCIES: Final[tuple[str, ...]] = ("realtime", "hourly", "daily", "weekly")
CHANNEL_KEYS: Final[tuple[str, ...]] = ("email", "push", "sms", "inApp")

# Wire key -> dataclass attribute for the channel map.
_CHANNEL_ATTRIBUTES: Final[dict[str, str]] = {
    "email": "email",
    "push": "push",
    "sms": "sms",
    "inApp": "in_app",
}
# Notification type -> channel attribute gating it.
_TYPE_CHANNELS: Final[dict[str, str]] = {
    "email": "email",
    "push": "push",
    "in-app": "in_app",
}


@dataclass(frozen=True)
class ChannelPreferences:
    """Per-channel delivery switches."""

    email: bool = True
    push: bool = True
    sms: bool = False
    in_app: bool = True

    def allows(self, notification_type: str) -> bool:
        """Return whether the channel carrying ``notification_type`` is on."""

        attribute = _TYPE_CHANNELS.get(notification_type)
        if attribute is None:
            return False
        return bool(getattr(self, attribute))

    def merged(self, updates: Mapping[str, bool]) -> "ChannelPreferences":
        changes = {}
        for key, value in updates.items():
            if key not in _CHANNEL_ATTRIBUTES:
                msg = f"Invalid channel: {key}. Valid channels: {', '.join(CHANNEL_KEYS)}"
                raise NotificationValidationError(msg)
            changes[_CHANNEL_ATTRIBUTES[key]] = bool(value)
        return replace(self, **changes)

    def to_dict(self) -> dict[str, bool]:
        return {key: getattr(self, attribute) for key, attribute in _CHANNEL_ATTRIBUTES.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ChannelPreferences":
        return cls().merged({k: v for k, v in (data or {}).items() if k in _CHANNEL_ATTRIBUTES})


@dataclass(frozen=True)
class CategoryPreferences:
    """Per-category delivery switches."""

    marketing: bool = False
    updates: bool = True
    security: bool = True
    social: bool = True
    reminders: bool = True

    def allows(self, category: str) -> bool:
        return self.to_dict().get(category, False)

    def merged(self, updates: Mapping[str, bool]) -> "CategoryPreferences":
        valid = self.to_dict()
        for key in updates:
            if key not in valid:
                msg = f"Invalid category: {key}. Valid categories: {', '.join(valid)}"
                raise NotificationValidationError(msg)
        return replace(self, **{key: bool(value) for key, value in updates.items()})

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "CategoryPreferences":
        known = cls().to_dict()
        return cls().merged({k: v for k, v in (data or {}).items() if k in known})


@dataclass(frozen=True)
class QuietHours:
    """Daily window, in a named timezone, during which delivery is held back."""

    enabled: bool = False
    start: str = "22:00"
    end: str = "08:00"
    timezone: str = "UTC"

    def validate(self) -> None:
        """Raise :class:`NotificationValidationError` for malformed values."""

        for label, value in (("start", self.start), ("end", self.end)):
            try:
                parse_clock(value)
            except ValueError as exc:
                raise NotificationValidationError(f"quietHours.{label}: {exc}") from exc
        try:
            resolve_timezone(self.timezone)
        except ValueError as exc:
            raise NotificationValidationError(f"quietHours.timezone: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "QuietHours | None":
        if data is None:
            return None
        defaults = cls()
        return cls(
            enabled=bool(data.get("enabled", defaults.enabled)),
            start=str(data.get("start") or defaults.start),
            end=str(data.get("end") or defaults.end),
            timezone=str(data.get("timezone") or defaults.timezone),
        )


@dataclass(frozen=True)
class UserPreferences:
    """Delivery preferences for a single user."""

    user_id: str
    channels: ChannelPreferences = field(default_factory=ChannelPreferences)
    categories: CategoryPreferences = field(default_factory=CategoryPreferences)
    quiet_hours: QuietHours | None = field(default_factory=QuietHours)
    frequency: str = "realtime"
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def defaults(cls, user_id: str, *, now: datetime | None = None) -> "UserPreferences":
        """Return the preferences applied to users who never saved any."""

        return cls(user_id=user_id, updated_at=now or utc_now())


@dataclass(frozen=True)
class PreferencesUpdate:
    """Partial preference change.

    ``channels`` and ``categories`` are merged key by key; ``quiet_hours``
    replaces the stored window wholesale.
    """

    channels: Mapping[str, bool] | None = None
    categories: Mapping[str, bool] | None = None
    quiet_hours: QuietHours | None = None
    frequency: str | None = None

    def apply_to(self, existing: UserPreferences, *, now: datetime | None = None) -> UserPreferences:
        if self.frequency is not None and self.frequency not in FREQUENCIES:
            msg = f"frequency must be one of: {', '.join(FREQUENCIES)}"
            raise NotificationValidationError(msg)
        if self.quiet_hours is not None:
            self.quiet_hours.validate()
        return replace(
            existing,
            channels=existing.channels.merged(self.channels or {}),
            categories=existing.categories.merged(self.categories or {}),
            quiet_hours=self.quiet_hours if self.quiet_hours is not None else existing.quiet_hours,
            frequency=self.frequency or existing.frequency,
            updated_at=now or utc_now(),
        )


def serialize_preferences(preferences: UserPreferences) -> dict[str, Any]:
    """Return the camelCase JSON representation stored in the cache."""

    payload: dict[str, Any] = {
        "userId": preferences.user_id,
        "channels": preferences.channels.to_dict(),
        "categories": preferences.categories.to_dict(),
        "frequency": preferences.frequency,
        "updatedAt": isoformat(preferences.updated_at),
    }
    if preferences.quiet_hours is not None:
        payload["quietHours"] = preferences.quiet_hours.to_dict()
    return payload


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = data.get(key)
    if value is not None and not isinstance(value, Mapping):
        raise NotificationValidationError(f"{key} must be an object")
    return value


def deserialize_preferences(data: Mapping[str, Any]) -> UserPreferences:
    """Rebuild cached preferences; malformed shapes raise a validation error."""

    if not isinstance(data, Mapping):
        raise NotificationValidationError("Preferences payload must be an object")
    frequency = data.get("frequency") or "realtime"
    return UserPreferences(
        user_id=str(data["userId"]),
        channels=ChannelPreferences.from_dict(_section(data, "channels")),
        categories=CategoryPreferences.from_dict(_section(data, "categories")),
        quiet_hours=QuietHours.from_dict(_section(data, "quietHours")),
        frequency=frequency if frequency in FREQUENCIES else "realtime",
        updated_at=parse_datetime(data.get("updatedAt")) or utc_now(),
    )


__all__ = [
    "CHANNEL_KEYS",
    "CategoryPreferences",
    "ChannelPreferences",
    "FREQUENCIES",
    "Frequency",
    "PreferencesUpdate",
    "QuietHours",
    "UserPreferences",
    "deserialize_preferences",
    "serialize_preferences",
]
