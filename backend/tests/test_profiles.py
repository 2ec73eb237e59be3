from __future__ import annotations

import pytest

from nextstep.errors import NotFoundError, ValidationError
from nextstep.modules.approval import approval_gate
from nextstep.modules.profiles import profile_service

from conftest import ADMIN_EMAIL, BUSINESS_DATA, STUDENT_DATA


def test_register_business_requires_core_fields(table):
    with pytest.raises(ValidationError) as ei:
        profile_service.register_business(business_id="biz-1", data={**BUSINESS_DATA, "phone": "", "industry": " "})
    assert sorted(ei.value.details["missing"]) == ["industry", "phone"]
    with pytest.raises(NotFoundError):
        profile_service.get_business("biz-1")


def test_register_business_splits_public_and_private(table):
    b = profile_service.register_business(business_id="biz-1", data=BUSINESS_DATA)
    assert b["companyName"] == "Corner Bakery"
    assert "phone" not in b
    assert b["private"]["phone"] == "555-0100"
    assert b["private"]["approvalStatus"] == "pending"

    with pytest.raises(ValidationError):
        profile_service.register_business(business_id="biz-1", data=BUSINESS_DATA)


def test_business_cannot_edit_its_own_approval(make_business):
    make_business("biz-1", approved=False)
    with pytest.raises(ValidationError):
        profile_service.update_business("biz-1", {"approvalStatus": "approved"})

    out = profile_service.update_business("biz-1", {"location": "Shelbyville", "phone": "555-0199"})
    assert out["location"] == "Shelbyville"
    assert out["private"]["phone"] == "555-0199"
    assert out["private"]["approvalStatus"] == "pending"


def test_contact_method_is_validated(table):
    with pytest.raises(ValidationError):
        profile_service.register_business(
            business_id="biz-1", data={**BUSINESS_DATA, "preferredContactMethod": "Carrier pigeon"}
        )


def test_register_student_requires_skill_and_role(table):
    with pytest.raises(ValidationError):
        profile_service.register_student(student_id="stu-1", data={**STUDENT_DATA, "skills": []})
    with pytest.raises(ValidationError):
        profile_service.register_student(student_id="stu-1", data={**STUDENT_DATA, "desiredRoles": ["  "]})


def test_bio_limit_and_url_checks(table):
    with pytest.raises(ValidationError):
        profile_service.register_student(student_id="stu-1", data={**STUDENT_DATA, "bio": "x" * 501})
    with pytest.raises(ValidationError):
        profile_service.register_student(
            student_id="stu-1", data={**STUDENT_DATA, "portfolioUrl": "javascript:alert(1)"}
        )

    s = profile_service.register_student(
        student_id="stu-1", data={**STUDENT_DATA, "bio": "x" * 500, "linkedinUrl": "https://linkedin.com/in/sam"}
    )
    assert s["openToMatching"] is False
    assert s["linkedinUrl"] == "https://linkedin.com/in/sam"


def test_open_to_matching_listing(make_student):
    make_student("stu-1")
    make_student("stu-2", name="Riley")
    assert profile_service.list_open_students() == []

    profile_service.set_open_to_matching("stu-2", True)
    assert [s["name"] for s in profile_service.list_open_students()] == ["Riley"]

    # Regular profile edits do not flip the flag.
    profile_service.update_student("stu-2", {"bio": "Updated", "openToMatching": False})
    assert profile_service.get_student("stu-2")["openToMatching"] is True

    profile_service.set_open_to_matching("stu-2", False)
    assert profile_service.list_open_students() == []


def test_party_type(make_business, make_student):
    make_business("biz-1", approved=False)
    make_student("stu-1")
    assert profile_service.party_type("biz-1") == "business"
    assert profile_service.party_type("stu-1") == "student"
    assert profile_service.party_type("nobody") is None


def test_business_directory_lists_approved_public_facets_only(make_business):
    make_business("biz-1", companyName="Corner Bakery")
    make_business("biz-2", companyName="Apex Garage")
    make_business("biz-3", approved=False, companyName="Pending Co")
    make_business("biz-4", approved=False, companyName="Turned Down Ltd")
    approval_gate.reject("biz-4", actor_email=ADMIN_EMAIL)

    listed = profile_service.list_public_businesses()
    assert [b["companyName"] for b in listed] == ["Apex Garage", "Corner Bakery"]
    # Private facet fields stay out of the directory.
    assert all("phone" not in b and "approvalStatus" not in b for b in listed)
