"""Event reminder pipeline: tick -> scan -> fan-out."""

from chime.reminders.broadcast import REMINDER_CHANNEL, ReminderBroadcaster
from chime.reminders.scanner import DueEventScanner

__all__ = [
    "REMINDER_CHANNEL",
    "DueEventScanner",
    "ReminderBroadcaster",
]
