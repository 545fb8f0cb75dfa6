"""Push delivery for proactive companion messages."""

from src.notifications.push import ExpoPushSender, PushSender, is_expo_push_token

__all__ = [
    "ExpoPushSender",
    "PushSender",
    "is_expo_push_token",
]
