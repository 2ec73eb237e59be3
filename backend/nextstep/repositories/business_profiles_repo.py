from __future__ import annotations

from typing import Any

from boto3.dynamodb.conditions import Key

from ..db.dynamodb.table import get_main_table
from .common import build_set_expression, drop_nulls, now_iso, require_id, store_call, strip_internal

# Public facet: readable by other parties once approved.
PUBLIC_FIELDS = (
    "companyName",
    "location",
    "industry",
    "contactPersonName",
    "email",
    "preferredContactMethod",
    "potentialProblems",
    "categories",
    "customQuestions",
)


def business_public_key(business_id: str) -> dict[str, str]:
    bid = require_id(business_id, name="business_id")
    return {"pk": f"BUSINESS#{bid}", "sk": "PUBLIC"}


def business_private_key(business_id: str) -> dict[str, str]:
    bid = require_id(business_id, name="business_id")
    return {"pk": f"BUSINESS#{bid}", "sk": "PRIVATE"}


def approval_index_pk(status: str) -> str:
    return f"BUSINESS_APPROVAL#{str(status or '').strip().lower()}"


@store_call
def create_business(*, business_id: str, public: dict[str, Any], phone: str) -> dict[str, Any]:
    """
    Write both facets of a new business.

    The private facet (which carries `approvalStatus`) is written first and is
    the uniqueness guard. A public facet without a private one is never
    visible to students because visibility is decided by the private facet.
    """
    bid = require_id(business_id, name="business_id")
    now = now_iso()

    private_item: dict[str, Any] = {
        **business_private_key(bid),
        "entityType": "BusinessPrivate",
        "userId": bid,
        "phone": str(phone or ""),
        "approvalStatus": "pending",
        "createdAt": now,
        "updatedAt": now,
        "gsi1pk": approval_index_pk("pending"),
        "gsi1sk": f"{now}#{bid}",
    }
    get_main_table().put_item(item=private_item, condition_expression="attribute_not_exists(pk)")

    public_item: dict[str, Any] = {
        **business_public_key(bid),
        "entityType": "BusinessPublic",
        "businessId": bid,
        **{k: public.get(k) for k in PUBLIC_FIELDS if k in public},
    }
    get_main_table().put_item(item=drop_nulls(public_item))

    return merge_facets(public_item, private_item) or {}


@store_call
def get_public(business_id: str) -> dict[str, Any] | None:
    return strip_internal(get_main_table().get_item(key=business_public_key(business_id)))


@store_call
def get_private(business_id: str) -> dict[str, Any] | None:
    return strip_internal(get_main_table().get_item(key=business_private_key(business_id)))


def merge_facets(public: dict[str, Any] | None, private: dict[str, Any] | None) -> dict[str, Any] | None:
    if not public and not private:
        return None
    out = dict(strip_internal(public) or {})
    priv = strip_internal(private) or {}
    out["private"] = priv
    out["businessId"] = str(out.get("businessId") or priv.get("userId") or "") or None
    return out


def get_business(business_id: str) -> dict[str, Any] | None:
    """Owner/admin view: public facet plus a nested `private` facet."""
    return merge_facets(get_public(business_id), get_private(business_id))


@store_call
def update_public(business_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
    clean = {k: v for k, v in (updates or {}).items() if k in PUBLIC_FIELDS}
    if not clean:
        return get_public(business_id)
    expr, names, values = build_set_expression(clean)
    updated = get_main_table().update_item(
        key=business_public_key(business_id),
        update_expression=expr,
        expression_attribute_names=names,
        expression_attribute_values=values,
        condition_expression="attribute_exists(pk)",
    )
    return strip_internal(updated)


@store_call
def touch_private(business_id: str, *, phone: str | None = None) -> dict[str, Any] | None:
    updates: dict[str, Any] = {"updatedAt": now_iso()}
    if phone is not None:
        updates["phone"] = str(phone)
    expr, names, values = build_set_expression(updates)
    updated = get_main_table().update_item(
        key=business_private_key(business_id),
        update_expression=expr,
        expression_attribute_names=names,
        expression_attribute_values=values,
        condition_expression="attribute_exists(pk)",
    )
    return strip_internal(updated)


@store_call
def set_approval_status(*, business_id: str, from_status: str, to_status: str) -> dict[str, Any] | None:
    """
    Compare-and-set of `approvalStatus` on the private facet.

    Raises DdbConflict when the stored status is not `from_status`.
    """
    bid = require_id(business_id, name="business_id")
    now = now_iso()
    updated = get_main_table().update_item(
        key=business_private_key(bid),
        update_expression="SET #a = :to, approvalDecidedAt = :now, updatedAt = :now, gsi1pk = :g",
        expression_attribute_names={"#a": "approvalStatus"},
        expression_attribute_values={
            ":to": to_status,
            ":from": from_status,
            ":now": now,
            ":g": approval_index_pk(to_status),
        },
        condition_expression="#a = :from",
    )
    return strip_internal(updated)


@store_call
def list_by_approval_status(status: str, *, limit: int = 500) -> list[dict[str, Any]]:
    """Private facets in the given approval state, oldest registration first."""
    items = get_main_table().query_all(
        index_name="GSI1",
        key_condition_expression=Key("gsi1pk").eq(approval_index_pk(status)),
        scan_index_forward=True,
        max_items=max(1, int(limit or 500)),
    )
    return [strip_internal(it) or {} for it in items]
