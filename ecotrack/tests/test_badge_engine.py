"""
ecotrack/tests/test_badge_engine.py

Badge unlock rules over the catalog.
"""

from datetime import datetime, timezone

from ecotrack.features.badges.catalog import BADGE_CATALOG
from ecotrack.features.badges.engine import new_badges, next_badge, project_badges
from ecotrack.models.badge import Badge
from ecotrack.models.user import User

CUSTOM = (
    Badge(id="B10", name="Ten", description="10 points", threshold=10),
    Badge(id="B50", name="Fifty", description="50 points", threshold=50),
    Badge(id="B100", name="Hundred", description="100 points", threshold=100),
)


class TestNewBadges:
    def test_returns_badges_at_or_below_threshold(self):
        result = new_badges(50, set(), CUSTOM)
        assert [b.id for b in result] == ["B10", "B50"]
        assert all(b.is_unlocked for b in result)

    def test_excludes_already_unlocked(self):
        result = new_badges(120, {"B10", "B50"}, CUSTOM)
        assert [b.id for b in result] == ["B100"]

    def test_nothing_below_first_threshold(self):
        assert new_badges(9, set(), CUSTOM) == []

    def test_multiple_thresholds_crossed_at_once_in_catalog_order(self):
        result = new_badges(105, {"B10"}, CUSTOM)
        assert [b.id for b in result] == ["B50", "B100"]

    def test_unlocked_badge_never_returned_again(self):
        unlocked = set()
        for total in (5, 15, 60, 60, 110, 500):
            fresh = new_badges(total, unlocked, CUSTOM)
            assert not ({b.id for b in fresh} & unlocked)
            unlocked |= {b.id for b in fresh}
        assert unlocked == {"B10", "B50", "B100"}

    def test_default_catalog_order(self):
        thresholds = [b.threshold for b in BADGE_CATALOG]
        assert thresholds == sorted(thresholds)
        assert [b.id for b in new_badges(100, set())] == ["eco_beginner", "green_sprout", "eco_warrior"]

    def test_catalog_entries_not_mutated(self):
        new_badges(1000, set(), CUSTOM)
        assert not any(b.is_unlocked for b in CUSTOM)


class TestProjection:
    def test_user_unlocked_ids_ignore_false_entries(self):
        user = User(id="u1", join_date=datetime(2024, 1, 8, tzinfo=timezone.utc), badges={"B10": True, "B50": False})
        assert user.unlocked_badge_ids == {"B10"}

    def test_project_badges_marks_unlocked(self):
        projected = project_badges({"B50", "unknown"}, CUSTOM)
        assert [(b.id, b.is_unlocked) for b in projected] == [
            ("B10", False),
            ("B50", True),
            ("B100", False),
        ]


class TestNextBadge:
    def test_progress_towards_first_locked(self):
        progress = next_badge(30, {"B10"}, CUSTOM)
        assert progress.badge.id == "B50"
        assert progress.points_needed == 20
        assert progress.previous_threshold == 10
        assert progress.progress_percentage == 50.0

    def test_none_when_everything_unlocked(self):
        assert next_badge(200, {"B10", "B50", "B100"}, CUSTOM) is None

    def test_zero_points(self):
        progress = next_badge(0, set(), CUSTOM)
        assert progress.badge.id == "B10"
        assert progress.points_needed == 10
        assert progress.progress_percentage == 0.0
