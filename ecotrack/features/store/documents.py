"""
ecotrack/features/store/documents.py

Codec between domain records and generic store documents.
Every optional field has a default so missing or malformed documents still load.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from ecotrack.models.habit import Habit, HabitCategory, as_utc, default_habit_points
from ecotrack.models.user import DEFAULT_AVATAR, DEFAULT_ECO_GOAL, User

Document = Dict[str, Any]


def encode_datetime(moment: datetime) -> str:
    return as_utc(moment).isoformat()


def _datetime_or(value: Any, fallback: datetime) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str):
        try:
            return as_utc(datetime.fromisoformat(value))
        except ValueError:
            return fallback
    return fallback


def _str_or(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


def _bool_or(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _int_or(value: Any, default: int, minimum: int) -> int:
    # bool is an int subclass; a stored True is not a point value
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        return default
    return value


def _category_or(value: Any) -> HabitCategory:
    try:
        return HabitCategory(value)
    except ValueError:
        return HabitCategory.GENERAL


def _badges_or(value: Any) -> Dict[str, bool]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, bool)}


# ============ Users ============


def user_to_document(user: User) -> Document:
    return {
        "name": user.name,
        "email": user.email,
        "avatar": user.avatar,
        "total_points": user.total_points,
        "current_streak": user.current_streak,
        "longest_streak": user.longest_streak,
        "join_date": encode_datetime(user.join_date),
        "eco_goal": user.eco_goal,
        "badges": dict(user.badges),
        "is_dark_mode": user.is_dark_mode,
    }


def user_from_document(doc_id: str, data: Optional[Mapping[str, Any]], now: Optional[datetime] = None) -> User:
    data = data or {}
    loaded_at = now or datetime.now(timezone.utc)
    return User(
        id=doc_id,
        name=_str_or(data.get("name"), ""),
        email=_str_or(data.get("email"), ""),
        avatar=_str_or(data.get("avatar"), DEFAULT_AVATAR) or DEFAULT_AVATAR,
        total_points=_int_or(data.get("total_points"), 0, minimum=0),
        current_streak=_int_or(data.get("current_streak"), 0, minimum=0),
        longest_streak=_int_or(data.get("longest_streak"), 0, minimum=0),
        join_date=_datetime_or(data.get("join_date"), loaded_at),
        eco_goal=_str_or(data.get("eco_goal"), DEFAULT_ECO_GOAL),
        badges=_badges_or(data.get("badges")),
        is_dark_mode=_bool_or(data.get("is_dark_mode"), False),
    )


# ============ Habits ============


def habit_to_document(habit: Habit) -> Document:
    return {
        "title": habit.title,
        "description": habit.description,
        "category": habit.category.value,
        "points": habit.points,
        "date": encode_datetime(habit.date),
        "is_completed": habit.is_completed,
        "user_id": habit.user_id,
    }


def habit_from_document(doc_id: str, data: Optional[Mapping[str, Any]], now: Optional[datetime] = None) -> Habit:
    data = data or {}
    loaded_at = now or datetime.now(timezone.utc)
    return Habit(
        id=doc_id,
        title=_str_or(data.get("title"), ""),
        description=_str_or(data.get("description"), ""),
        category=_category_or(data.get("category")),
        points=_int_or(data.get("points"), default_habit_points(), minimum=1),
        date=_datetime_or(data.get("date"), loaded_at),
        is_completed=_bool_or(data.get("is_completed"), False),
        user_id=_str_or(data.get("user_id"), ""),
    )


def encode_fields(fields: Mapping[str, Any]) -> Document:
    """Encode a partial field mapping the same way full documents are encoded."""
    encoded: Document = {}
    for key, value in fields.items():
        if isinstance(value, datetime):
            encoded[key] = encode_datetime(value)
        elif isinstance(value, HabitCategory):
            encoded[key] = value.value
        elif isinstance(value, Mapping):
            encoded[key] = dict(value)
        else:
            encoded[key] = value
    return encoded
