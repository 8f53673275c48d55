"""
ecotrack/features/session/orchestrator.py

Session orchestrator: auth-driven loading, serialized mutations, observer fan-out.

State machine:
    SIGNED_OUT -[identity]-> LOADING -[profile+habits+badges]-> READY
    READY -[sign out]-> SIGNED_OUT
    READY -[add/update/delete/complete habit]-> LOADING -> READY

Every mutation persists first and reloads the habit collection afterwards;
in-memory state is only replaced once the store calls have succeeded. Store
and auth failures are turned into an error Outcome plus an error notice.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

from ecotrack.core.errors import AUTH_NOT_SIGNED_IN, AppError, AuthError, NotFoundError, ValidationError
from ecotrack.core.logging import log_event
from ecotrack.features.aggregation import reducers
from ecotrack.features.auth.provider import AuthIdentity, AuthProvider
from ecotrack.features.badges.catalog import BADGE_CATALOG
from ecotrack.features.badges.engine import new_badges, next_badge, project_badges
from ecotrack.features.session import messages
from ecotrack.features.store.adapter import HABITS, USERS, RecordStore, get_document_store
from ecotrack.models.badge import Badge, BadgeProgress
from ecotrack.models.habit import Habit
from ecotrack.models.session import Notice, SessionSnapshot, SessionState
from ecotrack.models.user import AVATARS, User
from ecotrack.realtime.hub import SessionHub

MAX_GOAL_LENGTH = 120


@dataclass(frozen=True)
class Outcome:
    """Result of one public session operation."""

    ok: bool
    message: str = ""
    error: Optional[AppError] = None
    record_id: Optional[str] = None
    unlocked_badges: Tuple[str, ...] = ()


@dataclass
class SessionContext:
    """Everything the session holds in memory for the signed-in user."""

    identity: Optional[AuthIdentity] = None
    user: Optional[User] = None
    habits: List[Habit] = field(default_factory=list)
    badges: List[Badge] = field(default_factory=list)
    state: SessionState = SessionState.SIGNED_OUT
    load_error: Optional[AppError] = None


def _habit_fields(habit: Habit) -> dict:
    return habit.model_dump(exclude={"id"})


class SessionOrchestrator:
    def __init__(
        self,
        auth: AuthProvider,
        store: RecordStore,
        hub: Optional[SessionHub] = None,
        catalog: Sequence[Badge] = BADGE_CATALOG,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.auth = auth
        self.store = store
        self.hub = hub or SessionHub()
        self._catalog = tuple(catalog)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._ctx = SessionContext()
        self._lock = asyncio.Lock()
        self._remove_listener = auth.add_listener(self._on_auth_state_changed)

    # Read access ------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._ctx.state

    @property
    def identity(self) -> Optional[AuthIdentity]:
        return self._ctx.identity

    @property
    def user(self) -> Optional[User]:
        return self._ctx.user

    @property
    def habits(self) -> Tuple[Habit, ...]:
        return tuple(self._ctx.habits)

    @property
    def badges(self) -> Tuple[Badge, ...]:
        return tuple(self._ctx.badges)

    def now(self) -> datetime:
        return self._clock()

    def snapshot(self, reason: str = "snapshot", unlocked: Sequence[str] = ()) -> SessionSnapshot:
        ctx = self._ctx
        return SessionSnapshot(
            state=ctx.state,
            reason=reason,
            user=ctx.user.model_copy(deep=True) if ctx.user else None,
            habits=tuple(ctx.habits),
            badges=tuple(ctx.badges),
            unlocked_badges=tuple(unlocked),
            computed_at=self._clock(),
        )

    # Aggregations over the loaded collection -------------------------
    def habits_on_date(self, day: Union[date, datetime]) -> List[Habit]:
        return reducers.habits_on_date(self._ctx.habits, day)

    def todays_habits(self) -> List[Habit]:
        return reducers.todays_habits(self._ctx.habits, self._clock())

    def completed_count_today(self) -> int:
        return reducers.completed_count_today(self._ctx.habits, self._clock())

    def points_earned_today(self) -> int:
        return reducers.points_earned_today(self._ctx.habits, self._clock())

    def today_summary(self) -> reducers.TodayStats:
        return reducers.summarize_today(self._ctx.habits, self._clock())

    def weekly_series(self) -> List[reducers.DayStat]:
        return reducers.weekly_series(self._ctx.habits, self._clock())

    def streaks(self) -> reducers.StreakStats:
        return reducers.compute_streaks(self._ctx.habits, self._clock())

    def category_breakdown(self) -> dict:
        return reducers.category_breakdown(self._ctx.habits)

    def next_badge(self) -> Optional[BadgeProgress]:
        user = self._ctx.user
        if user is None:
            return None
        return next_badge(user.total_points, user.unlocked_badge_ids, self._catalog)

    # Auth -------------------------------------------------------------
    async def sign_up(self, email: str, password: str, name: str) -> Outcome:
        try:
            identity = await self.auth.sign_up(email, password, display_name=User.normalized_display_name(name))
        except AppError as e:
            return await self._fail("sign up", e)
        if self._ctx.load_error is not None:
            return self._load_failed(self._ctx.load_error, identity)
        await self._notify("success", messages.ACCOUNT_CREATED)
        return Outcome(ok=True, message=messages.ACCOUNT_CREATED, record_id=identity.uid)

    async def sign_in(self, email: str, password: str) -> Outcome:
        try:
            identity = await self.auth.sign_in(email, password)
        except AppError as e:
            return await self._fail("sign in", e)
        if self._ctx.load_error is not None:
            return self._load_failed(self._ctx.load_error, identity)
        await self._notify("success", messages.WELCOME_BACK)
        return Outcome(ok=True, message=messages.WELCOME_BACK, record_id=identity.uid)

    async def sign_out(self) -> Outcome:
        try:
            await self.auth.sign_out()
        except AppError as e:
            return await self._fail("sign out", e)
        await self._notify("success", messages.SIGNED_OUT)
        return Outcome(ok=True, message=messages.SIGNED_OUT)

    async def _on_auth_state_changed(self, identity: Optional[AuthIdentity]) -> None:
        async with self._lock:
            if identity is None:
                self._ctx = SessionContext()
                log_event("info", "session.signed_out", event_type="session.signed_out")
                await self._publish("signed_out")
                return
            self._ctx = SessionContext(identity=identity)
            self._ctx.load_error = await self._load_user_data("signed_in")

    async def refresh(self) -> Outcome:
        """Reload profile, habits and badges for the signed-in identity."""
        async with self._lock:
            if self._ctx.identity is None:
                return await self._fail("refresh", AuthError(AUTH_NOT_SIGNED_IN, messages.SIGN_IN_REQUIRED))
            error = self._ctx.load_error = await self._load_user_data("refreshed")
        if error is not None:
            return self._load_failed(error, self._ctx.identity)
        return Outcome(ok=True)

    # Loading ----------------------------------------------------------
    @staticmethod
    def _load_failed(error: AppError, identity: Optional[AuthIdentity]) -> Outcome:
        """Credentials were accepted but the profile could not be loaded; the notice is already out."""
        return Outcome(
            ok=False,
            message=messages.failure("load user data", error.message),
            error=error,
            record_id=identity.uid if identity else None,
        )

    async def _load_user_data(self, reason: str) -> Optional[AppError]:
        identity = self._ctx.identity
        try:
            with self._loading():
                await self._publish("loading")
                user = await self.store.get(USERS, identity.uid)
                if user is None:
                    user = await self._create_profile(identity)
                habits = await self._fetch_habits(identity.uid)
                user, fresh = await self._unlock_qualifying(user)
                self._ctx.user = user
                self._ctx.habits = habits
                self._ctx.badges = project_badges(user.unlocked_badge_ids, self._catalog)
        except AppError as e:
            await self._publish("load_failed")
            await self._fail("load user data", e)
            return e

        log_event(
            "info",
            "session.loaded",
            user_id=identity.uid,
            event_type=f"session.{reason}",
            extra={"habits": len(self._ctx.habits), "total_points": self._ctx.user.total_points},
        )
        await self._publish(reason, unlocked=[b.id for b in fresh])
        await self._announce_badges(fresh)
        return None

    async def _create_profile(self, identity: AuthIdentity) -> User:
        user = User(
            id=identity.uid,
            name=User.normalized_display_name(identity.display_name),
            email=identity.email,
            join_date=self._clock(),
        )
        await self.store.save(user)
        log_event("info", "session.profile_created", user_id=user.id, event_type="profile.created")
        return user

    async def _fetch_habits(self, user_id: str) -> List[Habit]:
        return await self.store.load(HABITS, {"user_id": user_id})

    async def _unlock_qualifying(self, user: User) -> Tuple[User, List[Badge]]:
        """Persist badges already earned by stored points but not yet recorded."""
        fresh = new_badges(user.total_points, user.unlocked_badge_ids, self._catalog)
        if not fresh:
            return user, []
        badges = {**user.badges, **{b.id: True for b in fresh}}
        await self.store.update(USERS, user.id, {"badges": badges})
        return user.model_copy(update={"badges": badges}), fresh

    # Habit mutations --------------------------------------------------
    async def add_habit(self, habit: Habit) -> Outcome:
        async with self._lock:
            try:
                user = self._require_user()
                self._validate_habit(habit)
                with self._loading():
                    habit_id = await self.store.save(habit.model_copy(update={"id": "", "user_id": user.id}))
                    self._ctx.habits = await self._fetch_habits(user.id)
            except AppError as e:
                return await self._fail("add habit", e)

            log_event("info", "habit.added", user_id=user.id, habit_id=habit_id, event_type="habit.added")
            await self._publish("habit_added")
            await self._notify("success", messages.HABIT_ADDED)
            return Outcome(ok=True, message=messages.HABIT_ADDED, record_id=habit_id)

    async def update_habit(self, habit: Habit) -> Outcome:
        """Full-record update, including toggling completion. Points are not touched."""
        async with self._lock:
            try:
                user = self._require_user()
                if not habit.id:
                    raise ValidationError("Habit id is required")
                self._find_habit(habit.id)
                self._validate_habit(habit)
                with self._loading():
                    record = habit.model_copy(update={"user_id": user.id})
                    await self.store.update(HABITS, habit.id, _habit_fields(record))
                    self._ctx.habits = await self._fetch_habits(user.id)
            except AppError as e:
                return await self._fail("update habit", e)

            log_event("info", "habit.updated", user_id=user.id, habit_id=habit.id, event_type="habit.updated")
            await self._publish("habit_updated")
            return Outcome(ok=True, message=messages.HABIT_UPDATED, record_id=habit.id)

    async def delete_habit(self, habit_id: str) -> Outcome:
        async with self._lock:
            try:
                user = self._require_user()
                self._find_habit(habit_id)
                with self._loading():
                    await self.store.delete(HABITS, habit_id)
                    self._ctx.habits = await self._fetch_habits(user.id)
            except AppError as e:
                return await self._fail("delete habit", e)

            log_event("info", "habit.deleted", user_id=user.id, habit_id=habit_id, event_type="habit.deleted")
            await self._publish("habit_deleted")
            await self._notify("success", messages.HABIT_DELETED)
            return Outcome(ok=True, message=messages.HABIT_DELETED, record_id=habit_id)

    async def complete_habit(self, habit_id: str) -> Outcome:
        """
        Mark a habit completed and award its points.

        Points, streaks and newly unlocked badges go to the store in one profile
        update and reach observers as a single snapshot.
        """
        async with self._lock:
            try:
                user = self._require_user()
                habit = self._find_habit(habit_id)
                if habit.is_completed:
                    return Outcome(ok=True, message=messages.HABIT_ALREADY_COMPLETED, record_id=habit_id)

                with self._loading():
                    completed = habit.model_copy(update={"is_completed": True})
                    await self.store.update(HABITS, habit.id, _habit_fields(completed))
                    habits = await self._fetch_habits(user.id)

                    total = user.total_points + habit.points
                    streaks = reducers.compute_streaks(habits, self._clock())
                    fresh = new_badges(total, user.unlocked_badge_ids, self._catalog)
                    fields = {
                        "total_points": total,
                        "current_streak": streaks.current_streak,
                        # never lowered, so it stays >= current_streak
                        "longest_streak": max(user.longest_streak, streaks.longest_streak, streaks.current_streak),
                    }
                    if fresh:
                        fields["badges"] = {**user.badges, **{b.id: True for b in fresh}}
                    await self.store.update(USERS, user.id, fields)

                    updated = user.model_copy(update=fields)
                    self._ctx.user = updated
                    self._ctx.habits = habits
                    self._ctx.badges = project_badges(updated.unlocked_badge_ids, self._catalog)
            except AppError as e:
                return await self._fail("complete habit", e)

            unlocked = tuple(b.id for b in fresh)
            log_event(
                "info",
                "habit.completed",
                user_id=user.id,
                habit_id=habit.id,
                event_type="habit.completed",
                extra={"points": habit.points, "total_points": total},
            )
            await self._publish("habit_completed", unlocked=unlocked)
            message = messages.points_earned(habit.points)
            await self._notify("success", message)
            await self._announce_badges(fresh)
            return Outcome(ok=True, message=message, record_id=habit.id, unlocked_badges=unlocked)

    # Profile ----------------------------------------------------------
    async def update_profile(
        self,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
        eco_goal: Optional[str] = None,
        is_dark_mode: Optional[bool] = None,
    ) -> Outcome:
        async with self._lock:
            try:
                user = self._require_user()
                fields = self._profile_fields(name, avatar, eco_goal, is_dark_mode)
                await self.store.update(USERS, user.id, fields)
                self._ctx.user = user.model_copy(update=fields)
                if "name" in fields:
                    self._ctx.identity = self.auth.update_display_name(fields["name"])
            except AppError as e:
                return await self._fail("update profile", e)

            log_event("info", "profile.updated", user_id=user.id, event_type="profile.updated", extra={"fields": sorted(fields)})
            await self._publish("profile_updated")
            await self._notify("success", messages.PROFILE_UPDATED)
            return Outcome(ok=True, message=messages.PROFILE_UPDATED, record_id=user.id)

    @staticmethod
    def _profile_fields(
        name: Optional[str],
        avatar: Optional[str],
        eco_goal: Optional[str],
        is_dark_mode: Optional[bool],
    ) -> dict:
        fields: dict = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Name must not be empty")
            fields["name"] = name.strip()
        if avatar is not None:
            if avatar not in AVATARS:
                raise ValidationError(f"Unknown avatar: {avatar}")
            fields["avatar"] = avatar
        if eco_goal is not None:
            goal = eco_goal.strip()
            if not goal or len(goal) > MAX_GOAL_LENGTH:
                raise ValidationError(f"Eco goal must be 1-{MAX_GOAL_LENGTH} characters")
            fields["eco_goal"] = goal
        if is_dark_mode is not None:
            fields["is_dark_mode"] = bool(is_dark_mode)
        if not fields:
            raise ValidationError("Nothing to update")
        return fields

    # Internal helpers -------------------------------------------------
    def _require_user(self) -> User:
        if self._ctx.identity is None or self._ctx.user is None:
            raise AuthError(AUTH_NOT_SIGNED_IN, messages.SIGN_IN_REQUIRED)
        return self._ctx.user

    def _find_habit(self, habit_id: str) -> Habit:
        for habit in self._ctx.habits:
            if habit.id == habit_id:
                return habit
        raise NotFoundError(f"Habit not found: {habit_id}", record_id=habit_id)

    @staticmethod
    def _validate_habit(habit: Habit) -> None:
        if not habit.title.strip():
            raise ValidationError("Habit title is required")

    @contextmanager
    def _loading(self) -> Iterator[None]:
        previous = self._ctx.state
        self._ctx.state = SessionState.LOADING
        try:
            yield
        except BaseException:
            self._ctx.state = previous
            raise
        self._ctx.state = SessionState.READY

    async def _publish(self, reason: str, unlocked: Sequence[str] = ()) -> None:
        await self.hub.publish(self.snapshot(reason, unlocked))

    async def _notify(self, level: str, message: str) -> None:
        await self.hub.publish(Notice(level=level, message=message, created_at=self._clock()))

    async def _announce_badges(self, badges: Sequence[Badge]) -> None:
        user_id = self._ctx.identity.uid if self._ctx.identity else None
        for badge in badges:
            log_event("info", "badge.unlocked", user_id=user_id, event_type="badge.unlocked", extra={"badge_id": badge.id})
            await self._notify("success", messages.badge_unlocked(badge.name))

    async def _fail(self, action: str, error: AppError) -> Outcome:
        if isinstance(error, AuthError):
            message = messages.auth_error_message(error.code)
        else:
            message = messages.failure(action, error.message)
        log_event(
            "warning",
            "session.operation_failed",
            user_id=self._ctx.identity.uid if self._ctx.identity else None,
            event_type=action.replace(" ", "_"),
            error_code=error.code,
            extra={"detail": error.message},
        )
        await self._notify("error", message)
        return Outcome(ok=False, message=message, error=error)

    def close(self) -> None:
        self._remove_listener()


# Process-wide session used by routes
_session: Optional[SessionOrchestrator] = None


def get_session() -> SessionOrchestrator:
    global _session
    if _session is None:
        _session = SessionOrchestrator(AuthProvider(), RecordStore(get_document_store()))
    return _session


def reset_session() -> None:
    """
    Drop the process-wide session.

    FOR TESTING ONLY - forces re-initialization on next get_session() call.
    """
    global _session
    if _session is not None:
        _session.close()
    _session = None
