from __future__ import annotations

import hashlib
from typing import Any

from boto3.dynamodb.conditions import Key

from ..db.dynamodb.table import get_main_table
from .common import build_set_expression, drop_nulls, now_iso, require_id, store_call, strip_internal


def application_id_for(*, student_id: str, target_key: str, attempt: int) -> str:
    """
    Deterministic id for the n-th application of a student to one target.

    Two concurrent submissions for the same attempt compute the same id, so
    the conditional put in `put_application` lets exactly one of them in.
    """
    sid = require_id(student_id, name="student_id")
    tk = require_id(target_key, name="target_key")
    digest = hashlib.sha256(f"{sid}#{tk}".encode("utf-8")).hexdigest()[:20]
    return f"app_{digest}_{max(1, int(attempt))}"


def application_key(application_id: str) -> dict[str, str]:
    aid = require_id(application_id, name="application_id")
    return {"pk": f"APPLICATION#{aid}", "sk": "PROFILE"}


def business_index_pk(business_id: str) -> str:
    return f"APPLICATION_BUSINESS#{require_id(business_id, name='business_id')}"


def student_index_pk(student_id: str) -> str:
    return f"APPLICATION_STUDENT#{require_id(student_id, name='student_id')}"


@store_call
def put_application(item: dict[str, Any]) -> dict[str, Any]:
    """Conditional create; raises DdbConflict if the id is already taken."""
    aid = require_id(item.get("id"), name="application_id")
    applied_at = str(item.get("appliedAt") or now_iso())
    full: dict[str, Any] = {
        **application_key(aid),
        "entityType": "Application",
        **item,
        "gsi1pk": business_index_pk(str(item.get("businessId") or "")),
        "gsi1sk": f"{applied_at}#{aid}",
        "gsi2pk": student_index_pk(str(item.get("studentId") or "")),
        "gsi2sk": f"{applied_at}#{aid}",
    }
    full = drop_nulls(full)
    get_main_table().put_item(item=full, condition_expression="attribute_not_exists(pk)")
    return strip_internal(full) or {}


@store_call
def get_application(application_id: str) -> dict[str, Any] | None:
    return strip_internal(get_main_table().get_item(key=application_key(application_id)))


@store_call
def transition_status(
    *,
    application_id: str,
    from_status: str,
    to_status: str,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    """
    Conditional status edge: writes only if the stored status is `from_status`.

    Raises DdbConflict otherwise; callers decide whether that is an idempotent
    retry or an illegal cross-transition.
    """
    sets: dict[str, Any] = {"status": to_status, "updatedAt": now_iso()}
    sets.update(extra or {})
    expr, names, values = build_set_expression(sets)
    names["#s"] = "status"
    values[":from"] = from_status
    updated = get_main_table().update_item(
        key=application_key(application_id),
        update_expression=expr,
        expression_attribute_names=names,
        expression_attribute_values=values,
        condition_expression="#s = :from",
    )
    return strip_internal(updated)


@store_call
def list_by_business(business_id: str) -> list[dict[str, Any]]:
    items = get_main_table().query_all(
        index_name="GSI1",
        key_condition_expression=Key("gsi1pk").eq(business_index_pk(business_id)),
        scan_index_forward=False,
    )
    return [strip_internal(it) or {} for it in items]


@store_call
def list_by_student(student_id: str) -> list[dict[str, Any]]:
    items = get_main_table().query_all(
        index_name="GSI2",
        key_condition_expression=Key("gsi2pk").eq(student_index_pk(student_id)),
        scan_index_forward=False,
    )
    return [strip_internal(it) or {} for it in items]
