from __future__ import annotations

import uuid
from typing import Any

from boto3.dynamodb.conditions import Key

from ..db.dynamodb.errors import DdbConflict
from ..db.dynamodb.table import get_main_table
from .common import build_set_expression, now_iso, require_id, store_call, strip_internal

EDITABLE_FIELDS = ("title", "description", "categories", "customQuestions", "status")


def new_opportunity_id() -> str:
    return "opp_" + uuid.uuid4().hex[:18]


def opportunity_key(opportunity_id: str) -> dict[str, str]:
    oid = require_id(opportunity_id, name="opportunity_id")
    return {"pk": f"OPPORTUNITY#{oid}", "sk": "PROFILE"}


def business_index_pk(business_id: str) -> str:
    return f"BUSINESS_OPPORTUNITIES#{require_id(business_id, name='business_id')}"


def status_index_pk(status: str) -> str:
    return f"OPPORTUNITY_STATUS#{str(status or '').strip().lower()}"


@store_call
def create_opportunity(
    *,
    business_id: str,
    business_name: str,
    title: str,
    description: str,
    categories: list[str],
    custom_questions: list[dict[str, Any]],
    status: str,
) -> dict[str, Any]:
    oid = new_opportunity_id()
    now = now_iso()
    item: dict[str, Any] = {
        **opportunity_key(oid),
        "entityType": "Opportunity",
        "id": oid,
        "businessId": business_id,
        "businessName": business_name,
        "title": title,
        "description": description,
        "categories": list(categories),
        "customQuestions": list(custom_questions),
        "status": status,
        "applicantCount": 0,
        "createdAt": now,
        "updatedAt": now,
        "gsi1pk": business_index_pk(business_id),
        "gsi1sk": f"{now}#{oid}",
        "gsi2pk": status_index_pk(status),
        "gsi2sk": f"{now}#{oid}",
    }
    get_main_table().put_item(item=item, condition_expression="attribute_not_exists(pk)")
    return strip_internal(item) or {}


@store_call
def get_opportunity(opportunity_id: str) -> dict[str, Any] | None:
    return strip_internal(get_main_table().get_item(key=opportunity_key(opportunity_id)))


@store_call
def update_opportunity(opportunity_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
    """
    Partial update of editable fields.

    Conditional on the record not being closed, so a concurrent close always
    wins over an edit (closing is one-directional).
    """
    clean = {k: v for k, v in (updates or {}).items() if k in EDITABLE_FIELDS}
    clean["updatedAt"] = now_iso()
    if "status" in clean:
        clean["gsi2pk"] = status_index_pk(str(clean["status"]))
    expr, names, values = build_set_expression(clean)
    names["#s"] = "status"
    values[":closed"] = "closed"
    updated = get_main_table().update_item(
        key=opportunity_key(opportunity_id),
        update_expression=expr,
        expression_attribute_names=names,
        expression_attribute_values=values,
        condition_expression="attribute_exists(pk) AND #s <> :closed",
    )
    return strip_internal(updated)


@store_call
def close_opportunity(opportunity_id: str) -> tuple[dict[str, Any] | None, bool]:
    """
    Flip status to `closed`. Returns (item, changed).

    A second close is a no-op that returns the stored record unchanged.
    """
    now = now_iso()
    try:
        updated = get_main_table().update_item(
            key=opportunity_key(opportunity_id),
            update_expression="SET #s = :closed, closedAt = :now, updatedAt = :now, gsi2pk = :g",
            expression_attribute_names={"#s": "status"},
            expression_attribute_values={":closed": "closed", ":now": now, ":g": status_index_pk("closed")},
            condition_expression="attribute_exists(pk) AND #s <> :closed",
        )
    except DdbConflict:
        return get_opportunity(opportunity_id), False
    return strip_internal(updated), True


@store_call
def increment_applicant_count(opportunity_id: str, *, amount: int = 1) -> dict[str, Any] | None:
    updated = get_main_table().increment(
        key=opportunity_key(opportunity_id),
        attribute="applicantCount",
        amount=amount,
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
def list_by_status(status: str) -> list[dict[str, Any]]:
    items = get_main_table().query_all(
        index_name="GSI2",
        key_condition_expression=Key("gsi2pk").eq(status_index_pk(status)),
        scan_index_forward=False,
    )
    return [strip_internal(it) or {} for it in items]
