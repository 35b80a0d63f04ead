"""Relay core for LinkBeam.

Provides the session coordination core:
- Session store with lazy expiry
- Session lifecycle (creation and link submission)
- Notification channel for the waiting desktop
- Background sweeper
"""

from .channel import ChannelState, NotificationChannel
from .lifecycle import SessionLifecycle
from .session import SESSION_TTL, Session, generate_session_id
from .store import SessionStore
from .sweeper import Sweeper

__all__ = [
    "ChannelState",
    "NotificationChannel",
    "SESSION_TTL",
    "Session",
    "SessionLifecycle",
    "SessionStore",
    "Sweeper",
    "generate_session_id",
]
