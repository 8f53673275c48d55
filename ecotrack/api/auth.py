"""
ecotrack/api/auth.py
Email/password sign-up, sign-in and sign-out for the process session.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ecotrack.api.deps import raise_for_outcome
from ecotrack.features.session.orchestrator import SessionOrchestrator, get_session

router = APIRouter()


class SignUpRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str
    name: str = ""


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str


@router.post("/v1/auth/sign-up", status_code=201)
async def sign_up(body: SignUpRequest, session: SessionOrchestrator = Depends(get_session)):
    outcome = raise_for_outcome(await session.sign_up(body.email, body.password, body.name))
    return {"message": outcome.message, "user_id": outcome.record_id, "session": session.snapshot().model_dump(mode="json")}


@router.post("/v1/auth/sign-in")
async def sign_in(body: SignInRequest, session: SessionOrchestrator = Depends(get_session)):
    outcome = raise_for_outcome(await session.sign_in(body.email, body.password))
    return {"message": outcome.message, "user_id": outcome.record_id, "session": session.snapshot().model_dump(mode="json")}


@router.post("/v1/auth/sign-out")
async def sign_out(session: SessionOrchestrator = Depends(get_session)):
    outcome = raise_for_outcome(await session.sign_out())
    return {"message": outcome.message}


@router.get("/v1/session")
def get_session_state(session: SessionOrchestrator = Depends(get_session)):
    """Current session snapshot; works signed out too."""
    return session.snapshot().model_dump(mode="json")
