from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...repositories import applications_repo

BADGE_NONE = "none"
BADGE_RETURNING = "returning"
BADGE_FREQUENT = "frequent"

# Minimum completed-project counts, highest tier first.
FREQUENT_MIN_PROJECTS = 3
RETURNING_MIN_PROJECTS = 1

COMPLETED_STATUSES = frozenset({"completed", "rated"})


@dataclass(frozen=True, slots=True)
class BadgeStatus:
    business_id: str
    completed_projects: int
    badge: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "businessId": self.business_id,
            "completedProjects": self.completed_projects,
            "badge": self.badge,
        }


def badge_for_count(completed_projects: int) -> str:
    n = max(0, int(completed_projects or 0))
    if n >= FREQUENT_MIN_PROJECTS:
        return BADGE_FREQUENT
    if n >= RETURNING_MIN_PROJECTS:
        return BADGE_RETURNING
    return BADGE_NONE


def count_completed_projects(business_id: str) -> int:
    apps = applications_repo.list_by_business(business_id)
    return sum(1 for a in apps if str(a.get("status") or "") in COMPLETED_STATUSES)


def badge_for(business_id: str) -> BadgeStatus:
    """
    Recomputed from application records on every read; nothing is cached or
    stored, so the badge cannot drift from the applications it summarizes.
    """
    n = count_completed_projects(business_id)
    return BadgeStatus(business_id=business_id, completed_projects=n, badge=badge_for_count(n))
