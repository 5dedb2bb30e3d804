# This project was developed with assistance from AI tools.
"""Reminder throttling.

Decides from reminder history whether a reminder of a given type may be sent
for a requirement today. Cooldowns are counted in whole calendar days in the
organizational timezone, so a job that runs at slightly different times each
morning still sees a steady day count.
"""

import logging
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from db.enums import ReminderType

logger = logging.getLogger(__name__)

# Minimum whole days between two reminders of the same type for the same requirement
REMINDER_COOLDOWN_DAYS: dict[ReminderType, int] = {
    ReminderType.WARNING: 3,
    ReminderType.URGENT: 1,
    ReminderType.EXPIRED: 1,
    ReminderType.RENEWAL: 7,
    ReminderType.DUE_SOON: 3,
    ReminderType.OVERDUE: 1,
}


def days_since(sent_at: datetime, today: date, tz: ZoneInfo | None = None) -> int:
    """Whole calendar days between ``sent_at`` (localized to ``tz``) and ``today``."""
    if sent_at.tzinfo is None:
        sent_at = sent_at.replace(tzinfo=UTC)
    if tz is not None:
        sent_at = sent_at.astimezone(tz)
    return (today - sent_at.date()).days


def should_send_reminder(
    last_sent_at: datetime | None,
    reminder_type: ReminderType,
    today: date,
    tz: ZoneInfo | None = None,
) -> bool:
    """Pure cooldown check against the most recent reminder of this type."""
    if last_sent_at is None:
        return True
    return days_since(last_sent_at, today, tz) >= REMINDER_COOLDOWN_DAYS[reminder_type]


class ReminderThrottle:
    """History-backed throttle. Lookup failures fail closed (no reminder)."""

    def __init__(self, store, tz: ZoneInfo | None = None):
        self._store = store
        self._tz = tz

    async def allows(
        self,
        requirement_id: int,
        reminder_type: ReminderType,
        today: date,
    ) -> bool:
        try:
            last = await self._store.latest_reminder(requirement_id, reminder_type)
        except Exception:
            logger.warning(
                "Reminder history lookup failed for requirement %s (%s); not sending",
                requirement_id,
                reminder_type.value,
                exc_info=True,
            )
            return False

        allowed = should_send_reminder(
            last.sent_at if last is not None else None,
            reminder_type,
            today,
            self._tz,
        )
        if not allowed:
            logger.debug(
                "Reminder %s for requirement %s throttled (last sent %s)",
                reminder_type.value,
                requirement_id,
                last.sent_at,
            )
        return allowed
