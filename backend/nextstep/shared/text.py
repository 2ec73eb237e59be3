from __future__ import annotations

from typing import Any, Iterable


def clean_string(v: Any, *, max_len: int = 5000) -> str:
    s = str(v or "").strip()
    return s[:max_len] if s else ""


def clean_string_list(v: Any, *, max_items: int = 100, max_len: int = 200) -> list[str]:
    """Trim, drop empties, de-duplicate (first occurrence wins), bound size."""
    arr: Iterable[Any] = v if isinstance(v, (list, tuple, set)) else []
    out: list[str] = []
    for x in arr:
        s = clean_string(x, max_len=max_len)
        if not s:
            continue
        if s not in out:
            out.append(s)
        if len(out) >= max_items:
            break
    return out


def normalize_email(v: Any) -> str | None:
    em = str(v or "").strip().lower()
    if not em or "@" not in em:
        return None
    return em
