"""Static, process-wide badge catalog. Order is unlock order."""

from typing import Tuple

from ecotrack.models.badge import Badge

BADGE_CATALOG: Tuple[Badge, ...] = (
    Badge(id="eco_beginner", name="Eco Beginner", description="Earn your first 10 eco points", icon="🌱", threshold=10),
    Badge(id="green_sprout", name="Green Sprout", description="Reach 50 eco points", icon="🌿", threshold=50),
    Badge(id="eco_warrior", name="Eco Warrior", description="Reach 100 eco points", icon="🛡️", threshold=100),
    Badge(id="green_guardian", name="Green Guardian", description="Reach 250 eco points", icon="🌳", threshold=250),
    Badge(id="planet_protector", name="Planet Protector", description="Reach 500 eco points", icon="🌍", threshold=500),
    Badge(id="eco_hero", name="Eco Hero", description="Reach 1,000 eco points", icon="🦸", threshold=1000),
    Badge(id="earth_champion", name="Earth Champion", description="Reach 2,500 eco points", icon="🏆", threshold=2500),
)
