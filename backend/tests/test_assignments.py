from __future__ import annotations

from nextstep.modules.applications import lifecycle
from nextstep.modules.applications.targets import OpportunityTarget
from nextstep.modules.assignments.assignment_view import list_assigned_businesses, list_assigned_students


def _apply(opp_id: str, student_id: str) -> dict:
    return lifecycle.submit(student_id=student_id, target=OpportunityTarget(opportunity_id=opp_id))


def test_assignments_follow_accepted_applications(make_business, make_student, make_opportunity):
    make_business("biz-1")
    make_student("stu-1")
    make_student("stu-2", name="Riley")
    opp = make_opportunity("biz-1")

    a1 = _apply(opp["id"], "stu-1")
    a2 = _apply(opp["id"], "stu-2")
    assert list_assigned_students("biz-1") == []

    lifecycle.accept(a1["id"], actor_business_id="biz-1")
    lifecycle.reject(a2["id"], actor_business_id="biz-1")

    assert [s["name"] for s in list_assigned_students("biz-1")] == ["Sam Student"]
    assert [b["companyName"] for b in list_assigned_businesses("stu-1")] == ["Corner Bakery"]
    assert list_assigned_businesses("stu-2") == []

    lifecycle.mark_completed(a1["id"], actor_business_id="biz-1")
    assert list_assigned_students("biz-1") == []
    assert list_assigned_businesses("stu-1") == []


def test_student_listed_once_across_opportunities(make_business, make_student, make_opportunity):
    make_business("biz-1")
    make_student("stu-1")
    o1 = make_opportunity("biz-1")
    o2 = make_opportunity("biz-1", title="Logo design", categories=["Graphic Design"])

    for o in (o1, o2):
        app = _apply(o["id"], "stu-1")
        lifecycle.accept(app["id"], actor_business_id="biz-1")

    students = list_assigned_students("biz-1")
    assert len(students) == 1
    assert len(list_assigned_businesses("stu-1")) == 1
