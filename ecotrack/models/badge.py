from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Badge(BaseModel):
    """A catalog achievement; unlocked once total points reach the threshold."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    icon: str = "🏅"
    threshold: int = Field(ge=0, description="Total points required to unlock")
    is_unlocked: bool = False

    def qualifies(self, total_points: int) -> bool:
        return total_points >= self.threshold


class BadgeProgress(BaseModel):
    """Next locked badge and the distance to it."""

    model_config = ConfigDict(frozen=True)

    badge: Badge
    points_needed: int = Field(ge=0)
    progress_percentage: float = Field(ge=0, le=100)
    previous_threshold: Optional[int] = None
