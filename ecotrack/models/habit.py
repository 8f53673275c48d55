"""
ecotrack/models/habit.py
Habit domain model and the fixed category enumeration.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ecotrack.core.config import settings


def default_habit_points() -> int:
    return settings.DEFAULT_HABIT_POINTS


class HabitCategory(str, Enum):
    WATER = "Water Conservation"
    ENERGY = "Energy Saving"
    WASTE = "Waste Reduction"
    TRANSPORT = "Green Transport"
    FOOD = "Sustainable Food"
    GENERAL = "General"


CATEGORY_ICONS: Dict[HabitCategory, str] = {
    HabitCategory.WATER: "💧",
    HabitCategory.ENERGY: "⚡",
    HabitCategory.WASTE: "♻️",
    HabitCategory.TRANSPORT: "🚶",
    HabitCategory.FOOD: "🥗",
    HabitCategory.GENERAL: "🌱",
}


def all_categories() -> List[dict]:
    return [{"name": c.value, "icon": CATEGORY_ICONS[c]} for c in HabitCategory]


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class Habit(BaseModel):
    """A trackable daily action. Day-level, UTC only."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str
    description: str = ""
    category: HabitCategory = HabitCategory.GENERAL
    points: int = Field(default_factory=default_habit_points, gt=0)
    date: datetime
    is_completed: bool = False
    user_id: str = ""

    @field_validator("date")
    @classmethod
    def _normalize_date(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def icon(self) -> str:
        return CATEGORY_ICONS[self.category]
