from __future__ import annotations

import pytest

from nextstep.errors import ForbiddenError, NotFoundError, StateError, ValidationError
from nextstep.modules.applications import lifecycle
from nextstep.modules.applications.targets import OpportunityTarget
from nextstep.modules.opportunities import catalog_service
from nextstep.modules.opportunities.fields import DESCRIPTION_MAX_LEN, TITLE_MAX_LEN
from nextstep.repositories import opportunities_repo


@pytest.fixture
def biz(make_business):
    return make_business("biz-1")


def _data(**overrides):
    return {
        "title": "Refresh our website",
        "description": "Help us redesign the bakery website.",
        "categories": ["Web Development"],
        **overrides,
    }


def test_create_defaults_and_denormalizes_business_name(biz):
    opp = catalog_service.create_opportunity(business_id="biz-1", data=_data())
    assert opp["id"].startswith("opp_")
    assert opp["status"] == "active"
    assert opp["businessName"] == "Corner Bakery"
    assert opp["applicantCount"] == 0
    assert opp["customQuestions"] == []


@pytest.mark.parametrize(
    "overrides,code",
    [
        ({"title": ""}, "title_required"),
        ({"title": "x" * (TITLE_MAX_LEN + 1)}, "title_too_long"),
        ({"description": "x" * (DESCRIPTION_MAX_LEN + 1)}, "description_too_long"),
        ({"categories": []}, "categories_required"),
        ({"categories": ["Underwater Basket Weaving"]}, "invalid_category"),
        ({"status": "closed"}, "close_via_close"),
        ({"customQuestions": [{"question": "Q"}, {"question": "Q"}]}, "duplicate_question"),
    ],
)
def test_create_validation(biz, overrides, code):
    with pytest.raises(ValidationError) as ei:
        catalog_service.create_opportunity(business_id="biz-1", data=_data(**overrides))
    assert ei.value.code == code
    assert catalog_service.list_for_business("biz-1") == []


def test_title_at_limit_is_accepted(biz):
    opp = catalog_service.create_opportunity(business_id="biz-1", data=_data(title="x" * TITLE_MAX_LEN))
    assert len(opp["title"]) == TITLE_MAX_LEN


def test_unregistered_business_cannot_post(table):
    with pytest.raises(NotFoundError):
        catalog_service.create_opportunity(business_id="nobody", data=_data())


def test_partial_update_and_toggle(biz):
    opp = catalog_service.create_opportunity(business_id="biz-1", data=_data())
    out = catalog_service.update_opportunity(opp["id"], {"status": "draft"}, actor_business_id="biz-1")
    assert out["status"] == "draft"
    assert out["title"] == "Refresh our website"

    out = catalog_service.update_opportunity(opp["id"], {"title": "New title"}, actor_business_id="biz-1")
    assert out["title"] == "New title"
    assert out["status"] == "draft"


def test_update_by_other_business_is_forbidden(biz, make_business):
    make_business("biz-2")
    opp = catalog_service.create_opportunity(business_id="biz-1", data=_data())
    with pytest.raises(ForbiddenError):
        catalog_service.update_opportunity(opp["id"], {"title": "Mine now"}, actor_business_id="biz-2")


def test_close_is_idempotent_and_final(biz, make_student):
    make_student("stu-1")
    opp = catalog_service.create_opportunity(business_id="biz-1", data=_data())
    app = lifecycle.submit(student_id="stu-1", target=OpportunityTarget(opportunity_id=opp["id"]))

    closed = catalog_service.close_opportunity(opp["id"], actor_business_id="biz-1")
    assert closed["status"] == "closed"
    again = catalog_service.close_opportunity(opp["id"], actor_business_id="biz-1")
    assert again["closedAt"] == closed["closedAt"]

    with pytest.raises(StateError):
        catalog_service.update_opportunity(opp["id"], {"status": "active"}, actor_business_id="biz-1")

    # Existing applications keep moving after a close.
    assert lifecycle.accept(app["id"], actor_business_id="biz-1")["status"] == "accepted"


def test_student_catalog_shows_active_from_approved_with_badge(biz, make_business):
    make_business("biz-2", approved=False, companyName="Pending Co")
    # Written straight to storage: a pending business cannot post through the service.
    opportunities_repo.create_opportunity(
        business_id="biz-2",
        business_name="Pending Co",
        title="Hidden",
        description="Should not be listed.",
        categories=["Marketing"],
        custom_questions=[],
        status="active",
    )
    catalog_service.create_opportunity(business_id="biz-1", data=_data())
    catalog_service.create_opportunity(
        business_id="biz-1", data=_data(title="Drafty", status="draft", categories=["Marketing"])
    )
    closed = catalog_service.create_opportunity(business_id="biz-1", data=_data(title="Old"))
    catalog_service.close_opportunity(closed["id"], actor_business_id="biz-1")
    marketing = catalog_service.create_opportunity(
        business_id="biz-1", data=_data(title="Flyers", categories=["Marketing", "Graphic Design"])
    )

    listed = catalog_service.list_for_students()
    assert sorted(o["title"] for o in listed) == ["Flyers", "Refresh our website"]
    assert all(o["businessBadge"]["badge"] == "none" for o in listed)

    only_marketing = catalog_service.list_for_students(category="Marketing")
    assert [o["id"] for o in only_marketing] == [marketing["id"]]

    with pytest.raises(ValidationError):
        catalog_service.list_for_students(category="Nope")


def test_draft_is_visible_to_owner_only(biz, make_student):
    make_student("stu-9")
    draft = catalog_service.create_opportunity(business_id="biz-1", data=_data(title="Secret draft", status="draft"))

    assert catalog_service.get_opportunity(draft["id"], viewer_id="biz-1")["title"] == "Secret draft"
    with pytest.raises(NotFoundError):
        catalog_service.get_opportunity(draft["id"], viewer_id="stu-9")

    closed = catalog_service.create_opportunity(business_id="biz-1", data=_data(title="Done"))
    catalog_service.close_opportunity(closed["id"], actor_business_id="biz-1")
    with pytest.raises(NotFoundError):
        catalog_service.get_opportunity(closed["id"], viewer_id="stu-9")

    active = catalog_service.create_opportunity(business_id="biz-1", data=_data())
    assert catalog_service.get_opportunity(active["id"], viewer_id="stu-9")["id"] == active["id"]


def test_active_posting_of_unapproved_business_is_hidden(table, make_business):
    make_business("biz-2", approved=False, companyName="Pending Co")
    opp = opportunities_repo.create_opportunity(
        business_id="biz-2",
        business_name="Pending Co",
        title="Hidden",
        description="Should not be readable.",
        categories=["Marketing"],
        custom_questions=[],
        status="active",
    )
    with pytest.raises(NotFoundError):
        catalog_service.get_opportunity(opp["id"], viewer_id="stu-9")
    assert catalog_service.get_opportunity(opp["id"], viewer_id="biz-2")["title"] == "Hidden"
