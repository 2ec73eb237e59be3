from __future__ import annotations

PENDING = "pending"
ACCEPTED = "accepted"
REJECTED = "rejected"
COMPLETED = "completed"
RATED = "rated"

ALL_STATUSES = (PENDING, ACCEPTED, REJECTED, COMPLETED, RATED)

# A rejected application frees the (student, target) pair for a new attempt.
LIVE_STATUSES = frozenset({PENDING, ACCEPTED, COMPLETED, RATED})

# action -> (required current status, resulting status)
EDGES: dict[str, tuple[str, str]] = {
    "accept": (PENDING, ACCEPTED),
    "reject": (PENDING, REJECTED),
    "complete": (ACCEPTED, COMPLETED),
    "rate": (COMPLETED, RATED),
}


def is_live(status: str | None) -> bool:
    return str(status or "") in LIVE_STATUSES

