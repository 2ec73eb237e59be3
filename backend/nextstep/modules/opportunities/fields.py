from __future__ import annotations

from typing import Any

from ...errors import ValidationError
from ...shared.text import clean_string, clean_string_list

CATEGORIES: tuple[str, ...] = (
    "Marketing",
    "Social Media",
    "Web Development",
    "Graphic Design",
    "Data Analysis",
    "Content Writing",
    "Business Strategy",
    "Finance & Accounting",
    "Research",
    "Event Planning",
    "Photography & Video",
    "Other",
)

TITLE_MAX_LEN = 100
DESCRIPTION_MAX_LEN = 2000
QUESTION_MAX_LEN = 500
MAX_CUSTOM_QUESTIONS = 10


def clean_categories(value: Any, *, required: bool) -> list[str]:
    cats = clean_string_list(value, max_items=len(CATEGORIES), max_len=60)
    unknown = [c for c in cats if c not in CATEGORIES]
    if unknown:
        raise ValidationError(
            message="Unknown category: " + ", ".join(unknown),
            code="invalid_category",
            details={"allowed": list(CATEGORIES)},
        )
    if required and not cats:
        raise ValidationError(message="Select at least one category", code="categories_required")
    return cats


def clean_custom_questions(value: Any) -> list[dict[str, Any]]:
    """Normalize `[{question, required}]`; blank prompts are dropped, duplicates rejected."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(message="customQuestions must be a list", code="invalid_custom_questions")
    out: list[dict[str, Any]] = []
    seen: set[str] = set()
    for q in value:
        if not isinstance(q, dict):
            raise ValidationError(message="Each custom question must be an object", code="invalid_custom_questions")
        prompt = clean_string(q.get("question"), max_len=QUESTION_MAX_LEN)
        if not prompt:
            continue
        if prompt in seen:
            raise ValidationError(message=f"Duplicate custom question: {prompt}", code="duplicate_question")
        seen.add(prompt)
        out.append({"question": prompt, "required": bool(q.get("required"))})
    if len(out) > MAX_CUSTOM_QUESTIONS:
        raise ValidationError(
            message=f"At most {MAX_CUSTOM_QUESTIONS} custom questions are allowed",
            code="too_many_questions",
        )
    return out


def validate_title(value: Any) -> str:
    raw = str(value or "").strip()
    if not raw:
        raise ValidationError(message="Title is required", code="title_required")
    if len(raw) > TITLE_MAX_LEN:
        raise ValidationError(
            message=f"Title must be {TITLE_MAX_LEN} characters or less",
            code="title_too_long",
        )
    return raw


def validate_description(value: Any) -> str:
    raw = str(value or "").strip()
    if not raw:
        raise ValidationError(message="Description is required", code="description_required")
    if len(raw) > DESCRIPTION_MAX_LEN:
        raise ValidationError(
            message=f"Description must be {DESCRIPTION_MAX_LEN} characters or less",
            code="description_too_long",
        )
    return raw
