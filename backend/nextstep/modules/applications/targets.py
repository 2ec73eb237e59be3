from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from ...errors import ValidationError


@dataclass(frozen=True, slots=True)
class OpportunityTarget:
    """An application to a specific posted opportunity."""

    opportunity_id: str
    title: str | None = None

    kind = "opportunity"


@dataclass(frozen=True, slots=True)
class LegacyTarget:
    """An application made directly to a business, before opportunities existed."""

    business_id: str

    kind = "legacy"


ApplicationTarget = Union[OpportunityTarget, LegacyTarget]


def target_key(target: ApplicationTarget) -> str:
    """Uniqueness key: one live application per (student, target_key)."""
    if isinstance(target, OpportunityTarget):
        return f"OPPORTUNITY#{target.opportunity_id}"
    return f"LEGACY#{target.business_id}"


def target_from_record(application: dict[str, Any]) -> ApplicationTarget:
    oid = str(application.get("opportunityId") or "").strip()
    if oid:
        return OpportunityTarget(opportunity_id=oid, title=application.get("opportunityTitle"))
    return LegacyTarget(business_id=str(application.get("businessId") or ""))


def parse_target(payload: dict[str, Any]) -> ApplicationTarget:
    """Accepts `{"opportunityId": ...}` or `{"businessId": ...}` (legacy)."""
    oid = str((payload or {}).get("opportunityId") or "").strip()
    bid = str((payload or {}).get("businessId") or "").strip()
    if oid and bid:
        raise ValidationError(
            message="Provide either opportunityId or businessId, not both",
            code="ambiguous_target",
        )
    if oid:
        return OpportunityTarget(opportunity_id=oid)
    if bid:
        return LegacyTarget(business_id=bid)
    raise ValidationError(message="opportunityId is required", code="target_required")
