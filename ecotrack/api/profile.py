from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ecotrack.api.deps import raise_for_outcome, signed_in_session, user_view
from ecotrack.features.session.orchestrator import SessionOrchestrator
from ecotrack.models.user import AVATARS, ECO_GOALS

router = APIRouter()


class ProfilePatch(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    eco_goal: Optional[str] = None
    is_dark_mode: Optional[bool] = None


@router.get("/v1/profile")
def get_profile(session: SessionOrchestrator = Depends(signed_in_session)):
    return {
        "user": user_view(session.user),
        "avatars": list(AVATARS),
        "eco_goals": list(ECO_GOALS),
    }


@router.patch("/v1/profile")
async def patch_profile(body: ProfilePatch, session: SessionOrchestrator = Depends(signed_in_session)):
    outcome = raise_for_outcome(
        await session.update_profile(
            name=body.name,
            avatar=body.avatar,
            eco_goal=body.eco_goal,
            is_dark_mode=body.is_dark_mode,
        )
    )
    return {"message": outcome.message, "user": user_view(session.user)}


@router.get("/v1/badges")
def get_badges(session: SessionOrchestrator = Depends(signed_in_session)):
    """Catalog projected for the signed-in user, plus progress to the next one."""
    progress = session.next_badge()
    return {
        "badges": [b.model_dump(mode="json") for b in session.badges],
        "unlocked_count": sum(1 for b in session.badges if b.is_unlocked),
        "next": progress.model_dump(mode="json") if progress else None,
    }
