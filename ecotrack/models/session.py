"""
ecotrack/models/session.py
Session state machine states and the immutable events delivered to observers.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ecotrack.models.badge import Badge
from ecotrack.models.habit import Habit
from ecotrack.models.user import User


class SessionState(str, Enum):
    SIGNED_OUT = "signed_out"
    LOADING = "loading"
    READY = "ready"


class SessionSnapshot(BaseModel):
    """Frozen copy of session state published after each observable transition."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["session.snapshot"] = "session.snapshot"
    state: SessionState
    reason: str
    user: Optional[User] = None
    habits: Tuple[Habit, ...] = ()
    badges: Tuple[Badge, ...] = ()
    unlocked_badges: Tuple[str, ...] = Field(default=(), description="Badge ids unlocked by this transition")
    computed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Notice(BaseModel):
    """User-facing outcome message."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["session.notice"] = "session.notice"
    level: Literal["success", "error"]
    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
