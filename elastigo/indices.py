"""Index aliases and text analysis."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from elastigo.responses import BaseResponse


def _load(body: bytes) -> dict:
    data = json.loads(body)
    return data if isinstance(data, dict) else {}


@dataclass
class Token:
    """One token produced by an analyzer."""

    name: str = ""
    start_offset: int = 0
    end_offset: int = 0
    type: str = ""
    position: int = 0


@dataclass
class AnalyzeResponse:
    """The tokens a text was broken into."""

    tokens: list[Token] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> AnalyzeResponse:
        data = data or {}
        return cls(
            tokens=[
                Token(
                    name=item.get("token") or "",
                    start_offset=int(item.get("start_offset") or 0),
                    end_offset=int(item.get("end_offset") or 0),
                    type=item.get("type") or "",
                    position=int(item.get("position") or 0),
                )
                for item in data.get("tokens") or []
            ]
        )


def add_alias(conn: Any, index: str, alias: str) -> BaseResponse:
    """Create an alias for an index."""
    if not index:
        raise ValueError("You must specify an index to create the alias on")
    request = {"actions": [{"add": {"index": index, "alias": alias}}]}
    payload = json.dumps(request, separators=(",", ":")).encode("utf-8")
    body = conn.do_command("POST", "/_aliases", None, payload)
    return BaseResponse.from_dict(_load(body))


def analyze_indices(conn: Any, index: str, args: Mapping[str, Any]) -> AnalyzeResponse:
    """Analyze args['text'], with the analyzers of an index when one is given."""
    text = args.get("text") if args else None
    if not text:
        raise ValueError("text to analyze must not be blank")
    path = f"/{index}/_analyze" if index else "/_analyze"
    body = conn.do_command("GET", path, args, None)
    return AnalyzeResponse.from_dict(_load(body))