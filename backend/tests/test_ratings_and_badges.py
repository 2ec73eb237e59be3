from __future__ import annotations

import pytest

from nextstep.errors import ForbiddenError, StateError, ValidationError
from nextstep.modules.applications import lifecycle
from nextstep.modules.applications.targets import OpportunityTarget
from nextstep.modules.ratings import badges, rating_service
from nextstep.repositories import applications_repo, ratings_repo

SCORES = {
    "overallRating": 5,
    "communicationRating": 4,
    "professionalismRating": 5,
    "skillQualityRating": 3,
}


@pytest.fixture
def scenario(make_business, make_student, make_opportunity):
    make_business("biz-1")
    for sid in ("stu-1", "stu-2", "stu-3", "stu-4"):
        make_student(sid, name=f"Student {sid}")
    return make_opportunity("biz-1")


def _application(opp_id: str, student_id: str, *, to: str = "pending") -> dict:
    app = lifecycle.submit(student_id=student_id, target=OpportunityTarget(opportunity_id=opp_id))
    if to in ("accepted", "completed", "rated"):
        lifecycle.accept(app["id"], actor_business_id="biz-1")
    if to in ("completed", "rated"):
        lifecycle.mark_completed(app["id"], actor_business_id="biz-1")
    if to == "rated":
        rating_service.submit_rating(app["id"], scores=SCORES, actor_business_id="biz-1")
    if to == "rejected":
        lifecycle.reject(app["id"], actor_business_id="biz-1")
    return applications_repo.get_application(app["id"])


@pytest.mark.parametrize(
    "n,expected",
    [
        (0, badges.BADGE_NONE),
        (1, badges.BADGE_RETURNING),
        (2, badges.BADGE_RETURNING),
        (3, badges.BADGE_FREQUENT),
        (12, badges.BADGE_FREQUENT),
    ],
)
def test_badge_thresholds(n, expected):
    assert badges.badge_for_count(n) == expected


def test_badge_counts_completed_and_rated_only(scenario):
    _application(scenario["id"], "stu-1", to="completed")
    _application(scenario["id"], "stu-2", to="accepted")
    _application(scenario["id"], "stu-3", to="rejected")
    assert badges.badge_for("biz-1").to_dict() == {
        "businessId": "biz-1",
        "completedProjects": 1,
        "badge": "returning",
    }

    _application(scenario["id"], "stu-4", to="rated")
    _application(scenario["id"], "stu-3", to="completed")
    status = badges.badge_for("biz-1")
    assert status.completed_projects == 3
    assert status.badge == "frequent"


def test_fresh_business_has_no_badge(make_business):
    make_business("biz-9")
    assert badges.badge_for("biz-9").badge == badges.BADGE_NONE


@pytest.mark.parametrize("to", ["pending", "accepted", "rejected"])
def test_rating_requires_completed_application(scenario, to):
    app = _application(scenario["id"], "stu-1", to=to)
    with pytest.raises(StateError):
        rating_service.submit_rating(app["id"], scores=SCORES, actor_business_id="biz-1")
    assert ratings_repo.get_rating_for_application(app["id"]) is None
    assert applications_repo.get_application(app["id"])["status"] == to


def test_rating_marks_application_rated(scenario):
    app = _application(scenario["id"], "stu-1", to="completed")
    rating = rating_service.submit_rating(
        app["id"], scores=SCORES, feedback="  Great work  ", actor_business_id="biz-1"
    )

    assert rating["overallRating"] == 5
    assert rating["feedback"] == "Great work"
    assert rating["projectCompletedAt"]
    assert applications_repo.get_application(app["id"])["status"] == "rated"

    with pytest.raises(StateError):
        rating_service.submit_rating(app["id"], scores=SCORES, actor_business_id="biz-1")


@pytest.mark.parametrize("bad", [0, 6, "5", 4.5, True, None])
def test_scores_must_be_whole_stars(scenario, bad):
    app = _application(scenario["id"], "stu-1", to="completed")
    with pytest.raises(ValidationError):
        rating_service.submit_rating(
            app["id"], scores={**SCORES, "communicationRating": bad}, actor_business_id="biz-1"
        )
    assert applications_repo.get_application(app["id"])["status"] == "completed"
    assert ratings_repo.get_rating_for_application(app["id"]) is None


def test_other_business_cannot_rate(scenario, make_business):
    make_business("biz-2")
    app = _application(scenario["id"], "stu-1", to="completed")
    with pytest.raises(ForbiddenError):
        rating_service.submit_rating(app["id"], scores=SCORES, actor_business_id="biz-2")


def test_rating_written_but_transition_lost_is_finished_on_retry(scenario):
    app = _application(scenario["id"], "stu-1", to="completed")
    stored = ratings_repo.create_rating(
        application_id=app["id"],
        student_id="stu-1",
        business_id="biz-1",
        scores=SCORES,
        feedback=None,
    )

    out = rating_service.submit_rating(
        app["id"], scores={**SCORES, "overallRating": 1}, actor_business_id="biz-1"
    )
    assert out["id"] == stored["id"]
    assert out["overallRating"] == 5
    assert applications_repo.get_application(app["id"])["status"] == "rated"


def test_average_and_summary(scenario, make_opportunity):
    assert rating_service.average_overall_rating("stu-1") is None

    other = make_opportunity("biz-1", title="Social media push", categories=["Social Media"])
    a1 = _application(scenario["id"], "stu-1", to="completed")
    a2 = _application(other["id"], "stu-1", to="completed")
    rating_service.submit_rating(a1["id"], scores=SCORES, actor_business_id="biz-1")
    rating_service.submit_rating(
        a2["id"], scores={**SCORES, "overallRating": 2, "skillQualityRating": 4}, actor_business_id="biz-1"
    )

    assert rating_service.average_overall_rating("stu-1") == 3.5
    summary = rating_service.rating_summary_for_student("stu-1")
    assert summary["count"] == 2
    assert summary["averages"]["skillQualityRating"] == 3.5
    assert summary["averages"]["communicationRating"] == 4.0
    assert len(rating_service.ratings_for_business("biz-1")) == 2
