from datetime import datetime, timezone, timedelta
from typing import Optional
import pytz


class DateUtils:
    """
    Centralized date/time utilities for consistent handling across the application

    Key Features:
    - Timezone-aware datetime handling
    - Expiry / cooldown window arithmetic
    - Date formatting for API payloads and emails
    """

    UTC = timezone.utc
    STORE_TIMEZONE = 'Europe/Rome'

    @classmethod
    def now_utc(cls) -> datetime:
        """Get current UTC datetime - always use this for stored timestamps"""
        return datetime.now(cls.UTC)

    @classmethod
    def to_utc(cls, dt: datetime, source_timezone: Optional[str] = None) -> datetime:
        """
        Convert datetime to UTC

        Args:
            dt: datetime to convert
            source_timezone: source timezone (if dt is naive)
        """
        if dt.tzinfo is None:
            if source_timezone:
                tz = pytz.timezone(source_timezone)
                dt = tz.localize(dt)
            else:
                # Assume UTC if no timezone specified
                dt = dt.replace(tzinfo=cls.UTC)

        return dt.astimezone(cls.UTC)

    @classmethod
    def to_iso_string(cls, dt: Optional[datetime]) -> Optional[str]:
        """Convert datetime to ISO 8601 string"""
        if dt is None:
            return None
        return cls.to_utc(dt).isoformat()

    @classmethod
    def format_for_display(
        cls,
        dt: datetime,
        timezone_name: str = STORE_TIMEZONE,
        format_string: str = '%Y-%m-%d %H:%M %Z'
    ) -> str:
        """
        Format datetime for user display

        Default format: "2026-01-03 10:30 CET"
        """
        target_tz = pytz.timezone(timezone_name)
        return cls.to_utc(dt).astimezone(target_tz).strftime(format_string)

    @classmethod
    def is_expired(cls, expiry_date: datetime, now: Optional[datetime] = None) -> bool:
        """True once `now` is strictly past the expiration datetime"""
        now = now or cls.now_utc()
        return now > expiry_date

    @classmethod
    def create_expiry_time(cls, duration_minutes: int, now: Optional[datetime] = None) -> datetime:
        """Create expiry datetime from now + duration"""
        now = now or cls.now_utc()
        return now + timedelta(minutes=duration_minutes)

    @classmethod
    def within_window(cls, since: datetime, window: timedelta, now: Optional[datetime] = None) -> bool:
        """True while less than `window` has elapsed since `since`"""
        now = now or cls.now_utc()
        return (now - since) < window
