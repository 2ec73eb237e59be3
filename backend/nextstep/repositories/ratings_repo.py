from __future__ import annotations

from typing import Any

from boto3.dynamodb.conditions import Key

from ..db.dynamodb.table import get_main_table
from .common import drop_nulls, now_iso, require_id, store_call, strip_internal


def rating_key(application_id: str) -> dict[str, str]:
    # One rating per application: the application id is the rating key.
    aid = require_id(application_id, name="application_id")
    return {"pk": f"RATING#{aid}", "sk": "PROFILE"}


def rating_id_for(application_id: str) -> str:
    return "rating_" + require_id(application_id, name="application_id")


@store_call
def create_rating(
    *,
    application_id: str,
    student_id: str,
    business_id: str,
    scores: dict[str, int],
    feedback: str | None,
) -> dict[str, Any]:
    """Conditional put; raises DdbConflict if this application was already rated."""
    aid = require_id(application_id, name="application_id")
    now = now_iso()
    item: dict[str, Any] = {
        **rating_key(aid),
        "entityType": "Rating",
        "id": rating_id_for(aid),
        "applicationId": aid,
        "studentId": student_id,
        "businessId": business_id,
        "overallRating": int(scores["overallRating"]),
        "communicationRating": int(scores["communicationRating"]),
        "professionalismRating": int(scores["professionalismRating"]),
        "skillQualityRating": int(scores["skillQualityRating"]),
        "feedback": feedback or None,
        "projectCompletedAt": now,
        "createdAt": now,
        "gsi1pk": f"RATING_STUDENT#{student_id}",
        "gsi1sk": f"{now}#{aid}",
        "gsi2pk": f"RATING_BUSINESS#{business_id}",
        "gsi2sk": f"{now}#{aid}",
    }
    item = drop_nulls(item)
    get_main_table().put_item(item=item, condition_expression="attribute_not_exists(pk)")
    return strip_internal(item) or {}


@store_call
def get_rating_for_application(application_id: str) -> dict[str, Any] | None:
    return strip_internal(get_main_table().get_item(key=rating_key(application_id)))


@store_call
def list_for_student(student_id: str) -> list[dict[str, Any]]:
    sid = require_id(student_id, name="student_id")
    items = get_main_table().query_all(
        index_name="GSI1",
        key_condition_expression=Key("gsi1pk").eq(f"RATING_STUDENT#{sid}"),
        scan_index_forward=False,
    )
    return [strip_internal(it) or {} for it in items]


@store_call
def list_for_business(business_id: str) -> list[dict[str, Any]]:
    bid = require_id(business_id, name="business_id")
    items = get_main_table().query_all(
        index_name="GSI2",
        key_condition_expression=Key("gsi2pk").eq(f"RATING_BUSINESS#{bid}"),
        scan_index_forward=False,
    )
    return [strip_internal(it) or {} for it in items]
