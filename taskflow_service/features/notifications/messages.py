"""Human-readable reminder wording."""

from __future__ import annotations

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 1440

REMINDER_TITLE = "Task Reminder"
REMINDER_ICON = "📋"


def format_reminder_time(minutes: int) -> str:
    """Describe a lead time: `15 minutes`, `1 hour`, `tomorrow`, `in 3 days`."""
    if minutes < MINUTES_PER_HOUR:
        return f"{minutes} minute{'' if minutes == 1 else 's'}"
    if minutes < MINUTES_PER_DAY:
        hours = minutes // MINUTES_PER_HOUR
        return f"{hours} hour{'' if hours == 1 else 's'}"
    days = minutes // MINUTES_PER_DAY
    return "tomorrow" if days == 1 else f"in {days} days"


def reminder_message(title: str, minutes: int) -> str:
    """Body of a deadline reminder sent `minutes` before the task is due.

    >>> reminder_message("Pay rent", 15)
    '"Pay rent" is due in 15 minutes! ⏰'
    >>> reminder_message("Pay rent", 1440)
    'Don\\'t forget: "Pay rent" is due tomorrow 📋'
    """
    time_text = format_reminder_time(minutes)
    if minutes < MINUTES_PER_HOUR:
        return f'"{title}" is due in {time_text}! ⏰'
    if minutes < MINUTES_PER_DAY:
        return f'"{title}" is due in {time_text} 📅'
    return f'Don\'t forget: "{title}" is due {time_text} 📋'
