"""Data models for notes and their durable JSON form."""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, Iterable, Optional, Tuple

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Millisecond timestamp plus random suffix, both base-36."""
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(11))
    return stamp + suffix


def utcnow() -> datetime:
    return datetime.now(UTC)


def dedupe_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """Drop blanks and repeats, keeping first-seen order."""
    seen = set()
    out = []
    for tag in tags:
        tag = str(tag).strip()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        out.append(tag)
    return tuple(out)


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value)
    else:
        raise ValueError(f"invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class Note:
    id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
    is_pinned: bool = False
    is_password_protected: bool = False
    tags: Tuple[str, ...] = field(default_factory=tuple)
    summary: Optional[str] = None
    glossary: Optional[str] = None
    grammar_results: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", dedupe_tags(self.tags))
        # naive timestamps are taken as UTC so notes always compare by instant
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))
        object.__setattr__(self, "updated_at", parse_timestamp(self.updated_at))

    @classmethod
    def new(cls, title: str = "", content: str = "", *, now: Optional[datetime] = None) -> "Note":
        stamp = now or utcnow()
        return cls(id=generate_id(), title=title, content=content, created_at=stamp, updated_at=stamp)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "isPinned": self.is_pinned,
            "isPasswordProtected": self.is_password_protected,
            "tags": list(self.tags),
        }
        # derived strings are omitted rather than stored as null
        if self.summary:
            payload["summary"] = self.summary
        if self.glossary:
            payload["glossary"] = self.glossary
        if self.grammar_results:
            payload["grammarResults"] = self.grammar_results
        return payload

    @classmethod
    def from_dict(cls, data: Any) -> "Note":
        if not isinstance(data, dict):
            raise ValueError(f"note entry must be an object, got {type(data).__name__}")
        missing = [key for key in ("id", "title", "content", "createdAt", "updatedAt") if key not in data]
        if missing:
            raise ValueError(f"note entry missing fields: {', '.join(missing)}")
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise ValueError("note tags must be a list")
        return cls(
            id=str(data["id"]),
            title=str(data["title"] or ""),
            content=str(data["content"] or ""),
            created_at=parse_timestamp(data["createdAt"]),
            updated_at=parse_timestamp(data["updatedAt"]),
            is_pinned=bool(data.get("isPinned", False)),
            is_password_protected=bool(data.get("isPasswordProtected", False)),
            tags=tuple(tags),
            summary=data.get("summary") or None,
            glossary=data.get("glossary") or None,
            grammar_results=data.get("grammarResults") or None,
        )


__all__ = [
    "Note",
    "dedupe_tags",
    "format_timestamp",
    "generate_id",
    "parse_timestamp",
    "utcnow",
]
