"""Response structures shared by many API calls."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable

_INT_TEXT = re.compile(r"[+-]?\d+")


def parse_status_int(value: Any) -> int:
    """Read an integer that the server may send as a number or as a string."""
    if value is None:
        return 0
    if isinstance(value, str):
        if _INT_TEXT.fullmatch(value):
            return int(value)
        raise ValueError(f"cannot read an integer from {value!r}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"cannot read an integer from {value!r}")
    return value


def parse_status_bool(value: Any) -> bool:
    """Read a boolean that the server may send as a bool or as a string."""
    if value is None:
        return False
    if value == "true" and isinstance(value, str):
        return True
    if value == "false" and isinstance(value, str):
        return False
    if isinstance(value, bool):
        return value
    raise ValueError(f"cannot read a boolean from {value!r}")


def _format_number(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


@dataclass
class Failure:
    """A shard failure reported by the server."""

    index: str = ""
    shard: int = 0
    reason: str = ""

    @classmethod
    def from_dict(cls, data: dict | None) -> Failure:
        data = data or {}
        return cls(
            index=data.get("index") or "",
            shard=parse_status_int(data.get("shard")),
            reason=data.get("reason") or "",
        )

    def __str__(self) -> str:
        return f"Failed on shard {self.shard} on index {self.index}:\n{self.reason}"


def format_failures(failures: Iterable[Failure]) -> str:
    """Join the descriptions of several failures, one after another."""
    return "\n".join(str(failure) for failure in failures)


@dataclass
class Status:
    """Shard counts of an operation."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    failures: list[Failure] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict | None) -> Status:
        data = data or {}
        return cls(
            total=parse_status_int(data.get("total")),
            successful=parse_status_int(data.get("successful")),
            failed=parse_status_int(data.get("failed")),
            failures=[Failure.from_dict(item) for item in data.get("failures") or []],
        )


@dataclass
class ExtendedStatus:
    """An ok flag together with shard counts."""

    ok: bool = False
    shards_status: Status = field(default_factory=Status)

    @classmethod
    def from_dict(cls, data: dict | None) -> ExtendedStatus:
        data = data or {}
        return cls(
            ok=parse_status_bool(data.get("ok")),
            shards_status=Status.from_dict(data.get("_shards")),
        )


@dataclass
class BaseResponse:
    """The common answer to document operations."""

    ok: bool = False
    index: str = ""
    doc_type: str = ""
    doc_id: str = ""
    source: Any = None
    version: int = 0
    found: bool = False
    exists: bool = False
    created: bool = False
    matches: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict | None) -> BaseResponse:
        data = data or {}
        return cls(
            ok=bool(data.get("ok", False)),
            index=data.get("_index") or "",
            doc_type=data.get("_type") or "",
            doc_id=data.get("_id") or "",
            source=data.get("_source"),
            version=int(data.get("_version") or 0),
            found=bool(data.get("found", False)),
            exists=bool(data.get("exists", False)),
            created=bool(data.get("created", False)),
            matches=list(data.get("matches") or []),
        )


@dataclass
class MatchRes:
    """A document that a query matched."""

    index: str = ""
    doc_id: str = ""


@dataclass
class Explanation:
    """A score explanation tree."""

    value: float = 0.0
    description: str = ""
    details: list[Explanation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict | None) -> Explanation:
        data = data or {}
        return cls(
            value=float(data.get("value") or 0.0),
            description=data.get("description") or "",
            details=[cls.from_dict(item) for item in data.get("details") or []],
        )

    def format(self, indent: str = "") -> str:
        """Render the tree, each level prefixed by one more '| '."""
        value = _format_number(self.value)
        description = self.description.replace("\n", "")
        if not self.details:
            return f"{indent}>>>  {value} = {description}"
        inner = "\n".join(detail.format(indent + "| ") for detail in self.details)
        return f"{indent}{value} = {description}(\n{inner}\n{indent})"


@dataclass
class Match:
    """The answer of an explain request."""

    ok: bool = False
    matches: list[MatchRes] = field(default_factory=list)
    explanation: Explanation | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> Match:
        data = data or {}
        explanation = data.get("explanation")
        return cls(
            ok=bool(data.get("ok", False)),
            matches=[
                MatchRes(index=item.get("_index") or "", doc_id=item.get("_id") or "")
                for item in data.get("matches") or []
            ],
            explanation=Explanation.from_dict(explanation) if explanation is not None else None,
        )


def scroll_duration(duration: str) -> str:
    """The query fragment that asks for a scroll of the given duration."""
    return "&scroll=" + duration if duration else ""