from __future__ import annotations

from datetime import date as date_type, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ecotrack.api.deps import habit_view, raise_for_outcome, signed_in_session
from ecotrack.core.errors import NotFoundError
from ecotrack.features.session.orchestrator import SessionOrchestrator
from ecotrack.models.habit import Habit, HabitCategory, all_categories, as_utc, default_habit_points

router = APIRouter()


class HabitBody(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    category: HabitCategory = HabitCategory.GENERAL
    points: int = Field(default_factory=default_habit_points, gt=0)
    date: Optional[datetime] = None
    is_completed: bool = False


@router.get("/v1/habits/categories")
def list_categories():
    return {"categories": all_categories()}


@router.get("/v1/habits")
def list_habits(
    on: Optional[date_type] = Query(None, description="Only habits dated on this UTC day"),
    session: SessionOrchestrator = Depends(signed_in_session),
):
    """Loaded habits, newest first."""
    habits = session.habits_on_date(on) if on else list(session.habits)
    return {"habits": [habit_view(h) for h in habits], "count": len(habits)}


@router.post("/v1/habits", status_code=201)
async def add_habit(body: HabitBody, session: SessionOrchestrator = Depends(signed_in_session)):
    habit = Habit(
        title=body.title,
        description=body.description,
        category=body.category,
        points=body.points,
        date=as_utc(body.date) if body.date else session.now(),
        is_completed=body.is_completed,
    )
    outcome = raise_for_outcome(await session.add_habit(habit))
    return {"message": outcome.message, "habit": _view_by_id(session, outcome.record_id)}


@router.put("/v1/habits/{habit_id}")
async def update_habit(habit_id: str, body: HabitBody, session: SessionOrchestrator = Depends(signed_in_session)):
    existing = _find(session, habit_id)
    habit = existing.model_copy(
        update={
            "title": body.title,
            "description": body.description,
            "category": body.category,
            "points": body.points,
            "date": as_utc(body.date) if body.date else existing.date,
            "is_completed": body.is_completed,
        }
    )
    outcome = raise_for_outcome(await session.update_habit(habit))
    return {"message": outcome.message, "habit": _view_by_id(session, habit_id)}


@router.delete("/v1/habits/{habit_id}")
async def delete_habit(habit_id: str, session: SessionOrchestrator = Depends(signed_in_session)):
    outcome = raise_for_outcome(await session.delete_habit(habit_id))
    return {"message": outcome.message, "habit_id": habit_id}


@router.post("/v1/habits/{habit_id}/complete")
async def complete_habit(habit_id: str, session: SessionOrchestrator = Depends(signed_in_session)):
    outcome = raise_for_outcome(await session.complete_habit(habit_id))
    return {
        "message": outcome.message,
        "habit": _view_by_id(session, habit_id),
        "total_points": session.user.total_points,
        "unlocked_badges": list(outcome.unlocked_badges),
    }


def _find(session: SessionOrchestrator, habit_id: str) -> Habit:
    for habit in session.habits:
        if habit.id == habit_id:
            return habit
    raise NotFoundError(f"Habit not found: {habit_id}", record_id=habit_id)


def _view_by_id(session: SessionOrchestrator, habit_id: Optional[str]) -> Optional[dict]:
    for habit in session.habits:
        if habit.id == habit_id:
            return habit_view(habit)
    return None
