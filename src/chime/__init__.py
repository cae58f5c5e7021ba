"""Chime - event reminders pushed over WebSockets."""

__version__ = "0.1.0"
