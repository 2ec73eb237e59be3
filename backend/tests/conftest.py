from __future__ import annotations

import copy
import re
import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure `backend/` is on sys.path so `import nextstep.*` works in tests.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from nextstep.auth.cognito import VerifiedUser  # noqa: E402
from nextstep.db.dynamodb.errors import DdbConflict  # noqa: E402
from nextstep.db.dynamodb.table import Page  # noqa: E402
from nextstep.repositories import (  # noqa: E402
    applications_repo,
    business_profiles_repo,
    opportunities_repo,
    ratings_repo,
    student_profiles_repo,
)
from nextstep.settings import settings  # noqa: E402

ADMIN_EMAIL = "admin@nextstep.test"

_INDEX_KEYS = {
    None: ("pk", "sk"),
    "GSI1": ("gsi1pk", "gsi1sk"),
    "GSI2": ("gsi2pk", "gsi2sk"),
}


class FakeTable:
    """
    In-memory stand-in for `DynamoTable`.

    Understands the expression subset the repositories emit: conditions built
    from attribute_exists / attribute_not_exists / = / <> joined by AND or OR,
    and SET / ADD / REMOVE update clauses.
    """

    table_name = "nextstep-test"

    def __init__(self) -> None:
        self.items: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[str] = []

    # --- expression helpers ---

    @staticmethod
    def _operand(token: str, item: dict[str, Any], names: dict[str, str], values: dict[str, Any]) -> Any:
        token = token.strip()
        if token.startswith(":"):
            return values[token]
        if token.startswith("#"):
            return item.get(names[token])
        return item.get(token)

    def _term(self, term: str, item: dict[str, Any] | None, names, values) -> bool:
        it = item or {}
        term = term.strip()
        m = re.fullmatch(r"attribute_(not_)?exists\((.+)\)", term)
        if m:
            attr = m.group(2).strip()
            attr = names.get(attr, attr)
            present = attr in it
            return not present if m.group(1) else present
        if "<>" in term:
            lhs, rhs = term.split("<>", 1)
            return self._operand(lhs, it, names, values) != self._operand(rhs, it, names, values)
        if "=" in term:
            lhs, rhs = term.split("=", 1)
            return self._operand(lhs, it, names, values) == self._operand(rhs, it, names, values)
        raise AssertionError(f"unsupported condition term: {term}")

    def _check(self, condition: str | None, item, names, values, *, operation: str, key) -> None:
        if not condition:
            return
        ok = any(
            all(self._term(t, item, names or {}, values or {}) for t in clause.split(" AND "))
            for clause in condition.split(" OR ")
        )
        if not ok:
            raise DdbConflict(message="The conditional request failed", operation=operation, key=key)

    # --- DynamoTable surface ---

    def get_item(self, *, key: dict[str, Any], consistent: bool = True) -> dict[str, Any] | None:
        self.calls.append("GetItem")
        it = self.items.get((key["pk"], key["sk"]))
        return copy.deepcopy(it) if it is not None else None

    def put_item(
        self,
        *,
        item: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        self.calls.append("PutItem")
        k = (item["pk"], item["sk"])
        self._check(
            condition_expression,
            self.items.get(k),
            expression_attribute_names,
            expression_attribute_values,
            operation="PutItem",
            key={"pk": k[0], "sk": k[1]},
        )
        self.items[k] = copy.deepcopy(item)
        return {}

    def update_item(
        self,
        *,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_names: dict[str, str] | None,
        expression_attribute_values: dict[str, Any],
        condition_expression: str | None = None,
        return_values: str = "ALL_NEW",
    ) -> dict[str, Any] | None:
        self.calls.append("UpdateItem")
        names = expression_attribute_names or {}
        values = expression_attribute_values or {}
        k = (key["pk"], key["sk"])
        current = self.items.get(k)
        self._check(condition_expression, current, names, values, operation="UpdateItem", key=key)

        item = copy.deepcopy(current) if current is not None else dict(key)
        parts = re.split(r"\b(SET|ADD|REMOVE)\b", update_expression)
        action = None
        for part in parts:
            part = part.strip()
            if part in ("SET", "ADD", "REMOVE"):
                action = part
                continue
            if not part:
                continue
            for clause in [c.strip() for c in part.split(",") if c.strip()]:
                if action == "SET":
                    lhs, rhs = clause.split("=", 1)
                    attr = names.get(lhs.strip(), lhs.strip())
                    item[attr] = copy.deepcopy(values[rhs.strip()])
                elif action == "ADD":
                    lhs, rhs = clause.split()
                    attr = names.get(lhs, lhs)
                    item[attr] = item.get(attr, 0) + values[rhs]
                elif action == "REMOVE":
                    item.pop(names.get(clause, clause), None)
        self.items[k] = item
        return copy.deepcopy(item)

    def increment(
        self,
        *,
        key: dict[str, Any],
        attribute: str,
        amount: int = 1,
        condition_expression: str | None = "attribute_exists(pk)",
    ) -> dict[str, Any] | None:
        return self.update_item(
            key=key,
            update_expression="ADD #c :n",
            expression_attribute_names={"#c": attribute},
            expression_attribute_values={":n": int(amount)},
            condition_expression=condition_expression,
        )

    def _query(self, key_condition_expression: Any, index_name: str | None, scan_index_forward: bool):
        expr = key_condition_expression.get_expression()
        attr = expr["values"][0].name
        want = expr["values"][1]
        pk_attr, sk_attr = _INDEX_KEYS[index_name]
        assert attr == pk_attr, f"query on {attr} but {index_name} is keyed by {pk_attr}"
        rows = [copy.deepcopy(it) for it in self.items.values() if it.get(pk_attr) == want]
        rows.sort(key=lambda it: str(it.get(sk_attr) or ""), reverse=not scan_index_forward)
        return rows

    def query_page(
        self,
        *,
        key_condition_expression: Any,
        index_name: str | None = None,
        limit: int = 100,
        scan_index_forward: bool = False,
        exclusive_start_key: dict[str, Any] | None = None,
    ) -> Page:
        self.calls.append("Query")
        rows = self._query(key_condition_expression, index_name, scan_index_forward)
        return Page(items=rows[: max(1, int(limit))], last_evaluated_key=None)

    def query_all(
        self,
        *,
        key_condition_expression: Any,
        index_name: str | None = None,
        scan_index_forward: bool = False,
        max_items: int = 2000,
    ) -> list[dict[str, Any]]:
        self.calls.append("Query")
        return self._query(key_condition_expression, index_name, scan_index_forward)[:max_items]


@pytest.fixture
def table(monkeypatch) -> FakeTable:
    fake = FakeTable()
    for mod in (
        applications_repo,
        business_profiles_repo,
        opportunities_repo,
        ratings_repo,
        student_profiles_repo,
    ):
        monkeypatch.setattr(mod, "get_main_table", lambda: fake)
    monkeypatch.setattr(settings, "admin_emails", ADMIN_EMAIL)
    monkeypatch.setattr(settings, "ses_from_email", None)
    return fake


# --- scenario builders ---

BUSINESS_DATA: dict[str, Any] = {
    "companyName": "Corner Bakery",
    "location": "Springfield",
    "industry": "Food",
    "contactPersonName": "Dana Baker",
    "email": "dana@bakery.test",
    "phone": "555-0100",
    "preferredContactMethod": "Email",
    "potentialProblems": "Our website is outdated.",
    "categories": ["Marketing"],
}

STUDENT_DATA: dict[str, Any] = {
    "name": "Sam Student",
    "email": "sam@uni.test",
    "skills": ["Python", "Design"],
    "desiredRoles": ["Web Development"],
    "bio": "Second-year CS student.",
}


@pytest.fixture
def make_business(table):
    from nextstep.modules.approval import approval_gate
    from nextstep.modules.profiles import profile_service

    def _make(business_id: str = "biz-1", *, approved: bool = True, **overrides: Any) -> dict[str, Any]:
        data = {**BUSINESS_DATA, **overrides}
        profile_service.register_business(business_id=business_id, data=data)
        if approved:
            approval_gate.approve(business_id, actor_email=ADMIN_EMAIL)
        return profile_service.get_business(business_id)

    return _make


@pytest.fixture
def make_student(table):
    from nextstep.modules.profiles import profile_service

    def _make(student_id: str = "stu-1", **overrides: Any) -> dict[str, Any]:
        return profile_service.register_student(student_id=student_id, data={**STUDENT_DATA, **overrides})

    return _make


@pytest.fixture
def make_opportunity(table):
    from nextstep.modules.opportunities import catalog_service

    def _make(business_id: str = "biz-1", **overrides: Any) -> dict[str, Any]:
        data = {
            "title": "Refresh our website",
            "description": "Help us redesign the bakery website.",
            "categories": ["Web Development"],
            "status": "active",
            **overrides,
        }
        return catalog_service.create_opportunity(business_id=business_id, data=data)

    return _make


def fake_user(token: str) -> VerifiedUser:
    """Test tokens look like `<sub>` or `<sub>:<email>`."""
    sub, _, email = token.partition(":")
    return VerifiedUser(sub=sub, username=email or sub, email=email or None, claims={"sub": sub})
