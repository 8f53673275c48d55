from datetime import datetime
from typing import Dict, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ecotrack.models.habit import as_utc

DEFAULT_AVATAR = "🌱"
DEFAULT_ECO_GOAL = "Make the world greener!"
DEFAULT_DISPLAY_NAME = "Eco Warrior"

AVATARS = (
    "🌱", "🌿", "🌳", "🌲", "🌴", "🌵", "🍃", "🌾",
    "🌺", "🌸", "🌼", "🌻", "🌷", "🌹",
)

ECO_GOALS = (
    "Make the world greener!",
    "Reduce my carbon footprint",
    "Save water every day",
    "Use less plastic",
    "Walk more, drive less",
    "Eat more plant-based foods",
    "Recycle everything possible",
    "Conserve energy at home",
)


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    email: str = ""
    avatar: str = DEFAULT_AVATAR
    total_points: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    join_date: datetime
    eco_goal: str = DEFAULT_ECO_GOAL
    badges: Dict[str, bool] = Field(default_factory=dict)
    is_dark_mode: bool = False

    @field_validator("join_date")
    @classmethod
    def _normalize_join_date(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def unlocked_badge_ids(self) -> Set[str]:
        return {badge_id for badge_id, unlocked in self.badges.items() if unlocked}

    @staticmethod
    def normalized_display_name(display_name: str | None) -> str:
        if display_name and display_name.strip():
            return display_name.strip()
        return DEFAULT_DISPLAY_NAME
