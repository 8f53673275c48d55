"""Shared route helpers over the process-wide session."""

from fastapi import Depends

from ecotrack.core.errors import AUTH_NOT_SIGNED_IN, AppError, AuthError
from ecotrack.features.session import messages
from ecotrack.features.session.orchestrator import Outcome, SessionOrchestrator, get_session
from ecotrack.models.habit import Habit
from ecotrack.models.user import User


def signed_in_session(session: SessionOrchestrator = Depends(get_session)) -> SessionOrchestrator:
    """Session dependency for routes that need a loaded profile."""
    if session.user is None:
        raise AuthError(AUTH_NOT_SIGNED_IN, messages.SIGN_IN_REQUIRED)
    return session


def raise_for_outcome(outcome: Outcome) -> Outcome:
    if outcome.ok:
        return outcome
    error = outcome.error
    raise AppError(outcome.message, code=error.code, status_code=error.status_code)


def habit_view(habit: Habit) -> dict:
    data = habit.model_dump(mode="json")
    data["icon"] = habit.icon
    return data


def user_view(user: User) -> dict:
    return user.model_dump(mode="json")
