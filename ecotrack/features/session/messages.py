"""User-facing outcome messages."""

from ecotrack.core.errors import (
    AUTH_EMAIL_IN_USE,
    AUTH_INVALID_EMAIL,
    AUTH_NOT_SIGNED_IN,
    AUTH_USER_NOT_FOUND,
    AUTH_WEAK_PASSWORD,
    AUTH_WRONG_PASSWORD,
)

ACCOUNT_CREATED = "Account created successfully!"
WELCOME_BACK = "Welcome back!"
SIGNED_OUT = "Signed out successfully"
HABIT_ADDED = "Habit added successfully!"
HABIT_UPDATED = "Habit updated successfully!"
HABIT_DELETED = "Habit deleted successfully!"
HABIT_ALREADY_COMPLETED = "Habit already completed"
PROFILE_UPDATED = "Profile updated successfully!"
SIGN_IN_REQUIRED = "Please sign in first."

_AUTH_MESSAGES = {
    AUTH_USER_NOT_FOUND: "No user found with this email address.",
    AUTH_WRONG_PASSWORD: "Wrong password provided.",
    AUTH_EMAIL_IN_USE: "An account already exists with this email address.",
    AUTH_WEAK_PASSWORD: "The password provided is too weak.",
    AUTH_INVALID_EMAIL: "The email address is not valid.",
    AUTH_NOT_SIGNED_IN: SIGN_IN_REQUIRED,
}


def auth_error_message(code: str) -> str:
    return _AUTH_MESSAGES.get(code, "Authentication failed. Please try again.")


def points_earned(points: int) -> str:
    return f"Great job! +{points} eco points!"


def badge_unlocked(name: str) -> str:
    return f"🎉 New badge unlocked: {name}!"


def failure(action: str, detail: str) -> str:
    return f"Failed to {action}: {detail}"
