"""
ecotrack/api/stats.py
Read-only aggregations over the loaded habit collection.
"""

from fastapi import APIRouter, Depends

from ecotrack.api.deps import habit_view, signed_in_session
from ecotrack.features.session.orchestrator import SessionOrchestrator

router = APIRouter()


@router.get("/v1/stats/today")
def get_today(session: SessionOrchestrator = Depends(signed_in_session)):
    summary = session.today_summary()
    return {
        **summary.model_dump(mode="json"),
        "habits": [habit_view(h) for h in session.todays_habits()],
        "categories": session.category_breakdown(),
    }


@router.get("/v1/stats/weekly")
def get_weekly(session: SessionOrchestrator = Depends(signed_in_session)):
    """Seven days ending today, oldest first."""
    return {"days": [d.model_dump(mode="json") for d in session.weekly_series()]}


@router.get("/v1/stats/streaks")
def get_streaks(session: SessionOrchestrator = Depends(signed_in_session)):
    user = session.user
    return {
        "current_streak": user.current_streak,
        "longest_streak": user.longest_streak,
        "computed": session.streaks().model_dump(mode="json"),
    }
