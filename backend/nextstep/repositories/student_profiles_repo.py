from __future__ import annotations

from typing import Any

from boto3.dynamodb.conditions import Key

from ..db.dynamodb.table import get_main_table
from .common import build_set_expression, drop_nulls, now_iso, require_id, store_call, strip_internal

OPEN_TO_MATCHING_PK = "STUDENT_MATCHING#open"

PROFILE_FIELDS = (
    "name",
    "email",
    "skills",
    "desiredRoles",
    "bio",
    "resumeUrl",
    "portfolioUrl",
    "linkedinUrl",
)


def student_profile_key(student_id: str) -> dict[str, str]:
    sid = require_id(student_id, name="student_id")
    return {"pk": f"STUDENT#{sid}", "sk": "PROFILE"}


@store_call
def create_student(*, student_id: str, profile: dict[str, Any]) -> dict[str, Any]:
    sid = require_id(student_id, name="student_id")
    now = now_iso()
    item: dict[str, Any] = {
        **student_profile_key(sid),
        "entityType": "StudentProfile",
        "userId": sid,
        **{k: profile.get(k) for k in PROFILE_FIELDS if k in profile},
        "openToMatching": False,
        "createdAt": now,
        "updatedAt": now,
    }
    item = drop_nulls(item)
    get_main_table().put_item(item=item, condition_expression="attribute_not_exists(pk)")
    return strip_internal(item) or {}


@store_call
def get_student(student_id: str) -> dict[str, Any] | None:
    return strip_internal(get_main_table().get_item(key=student_profile_key(student_id)))


def get_students(student_ids: list[str]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for sid in student_ids:
        it = get_student(sid)
        if it:
            out.append(it)
    return out


@store_call
def update_student(student_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
    clean = {k: v for k, v in (updates or {}).items() if k in PROFILE_FIELDS}
    clean["updatedAt"] = now_iso()
    expr, names, values = build_set_expression(clean)
    updated = get_main_table().update_item(
        key=student_profile_key(student_id),
        update_expression=expr,
        expression_attribute_names=names,
        expression_attribute_values=values,
        condition_expression="attribute_exists(pk)",
    )
    return strip_internal(updated)


@store_call
def set_open_to_matching(student_id: str, open_to_matching: bool) -> dict[str, Any] | None:
    """Flip the opt-in flag alone; keeps the GSI1 listing in step with it."""
    sid = require_id(student_id, name="student_id")
    now = now_iso()
    if open_to_matching:
        expr = "SET openToMatching = :o, updatedAt = :u, gsi1pk = :g, gsi1sk = :gs"
        values: dict[str, Any] = {":o": True, ":u": now, ":g": OPEN_TO_MATCHING_PK, ":gs": f"{now}#{sid}"}
    else:
        expr = "SET openToMatching = :o, updatedAt = :u REMOVE gsi1pk, gsi1sk"
        values = {":o": False, ":u": now}
    updated = get_main_table().update_item(
        key=student_profile_key(sid),
        update_expression=expr,
        expression_attribute_names=None,
        expression_attribute_values=values,
        condition_expression="attribute_exists(pk)",
    )
    return strip_internal(updated)


@store_call
def list_open_to_matching(*, limit: int = 500) -> list[dict[str, Any]]:
    items = get_main_table().query_all(
        index_name="GSI1",
        key_condition_expression=Key("gsi1pk").eq(OPEN_TO_MATCHING_PK),
        scan_index_forward=False,
        max_items=max(1, int(limit or 500)),
    )
    return [strip_internal(it) or {} for it in items]
