"""
ecotrack/features/badges/engine.py

Pure badge rules: (points, unlocked ids, catalog) -> badges.
Thresholds are only ever checked upward; an unlocked badge stays unlocked.
"""

from typing import AbstractSet, List, Optional, Sequence

from ecotrack.features.badges.catalog import BADGE_CATALOG
from ecotrack.models.badge import Badge, BadgeProgress


def new_badges(
    total_points: int,
    currently_unlocked: AbstractSet[str],
    catalog: Sequence[Badge] = BADGE_CATALOG,
) -> List[Badge]:
    """
    Badges whose threshold is met by ``total_points`` and that are not yet unlocked.

    All badges crossed in one update are returned together, in catalog order,
    already marked unlocked.
    """
    return [
        badge.model_copy(update={"is_unlocked": True})
        for badge in catalog
        if badge.qualifies(total_points) and badge.id not in currently_unlocked
    ]


def project_badges(currently_unlocked: AbstractSet[str], catalog: Sequence[Badge] = BADGE_CATALOG) -> List[Badge]:
    """The catalog as seen by one user."""
    return [badge.model_copy(update={"is_unlocked": badge.id in currently_unlocked}) for badge in catalog]


def next_badge(
    total_points: int,
    currently_unlocked: AbstractSet[str],
    catalog: Sequence[Badge] = BADGE_CATALOG,
) -> Optional[BadgeProgress]:
    """First locked badge in catalog order and how far away it is. None when all are unlocked."""
    previous = 0
    for badge in catalog:
        if badge.id in currently_unlocked:
            previous = max(previous, badge.threshold)
            continue
        span = badge.threshold - previous
        if span <= 0:
            pct = 100.0
        else:
            pct = min(100.0, max(0.0, (total_points - previous) / span * 100))
        return BadgeProgress(
            badge=badge,
            points_needed=max(0, badge.threshold - total_points),
            progress_percentage=round(pct, 1),
            previous_threshold=previous,
        )
    return None
