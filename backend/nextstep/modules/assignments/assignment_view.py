"""
Who is working with whom.

Assignments are not stored: they are read off accepted applications every
time, so they can never disagree with the application records.
"""

from __future__ import annotations

from typing import Any

from ...repositories import applications_repo, business_profiles_repo, student_profiles_repo
from ..applications.states import ACCEPTED


def _unique(values: list[str]) -> list[str]:
    out: list[str] = []
    for v in values:
        if v and v not in out:
            out.append(v)
    return out


def list_assigned_students(business_id: str) -> list[dict[str, Any]]:
    apps = applications_repo.list_by_business(business_id)
    student_ids = _unique([str(a.get("studentId") or "") for a in apps if a.get("status") == ACCEPTED])
    return student_profiles_repo.get_students(student_ids)


def list_assigned_businesses(student_id: str) -> list[dict[str, Any]]:
    apps = applications_repo.list_by_student(student_id)
    business_ids = _unique([str(a.get("businessId") or "") for a in apps if a.get("status") == ACCEPTED])
    out: list[dict[str, Any]] = []
    for bid in business_ids:
        priv = business_profiles_repo.get_private(bid)
        if not priv or priv.get("approvalStatus") != "approved":
            continue
        pub = business_profiles_repo.get_public(bid)
        if pub:
            out.append(pub)
    return out
