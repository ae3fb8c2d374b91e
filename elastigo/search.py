"""Search and query API calls: search, scroll, suggest, count, explain, validate,
more-like-this, percolation and delete-by-query."""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from elastigo.responses import (
    BaseResponse,
    Explanation,
    Match,
    Status,
    format_failures,
)


def parse_float_nullable(value: Any) -> float:
    """Read a score that the server may send as null; null reads as 0.0.

    The value is rounded to single precision, as the server computes it.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"cannot read a float from {value!r}")
    try:
        return struct.unpack("f", struct.pack("f", float(value)))[0]
    except (OverflowError, struct.error) as exc:
        raise ValueError(f"float out of range: {value!r}") from exc


def _load(body: bytes) -> dict:
    data = json.loads(body)
    return data if isinstance(data, dict) else {}


@dataclass
class Hit:
    """One document found by a search."""

    index: str = ""
    doc_type: str = ""
    doc_id: str = ""
    score: float = 0.0
    source: Any = None
    fields: Any = None
    explanation: Explanation | None = None
    highlight: dict[str, list[str]] | None = None
    sort: list[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Hit:
        data = data or {}
        explanation = data.get("_explanation")
        highlight = data.get("highlight")
        return cls(
            index=data.get("_index") or "",
            doc_type=data.get("_type") or "",
            doc_id=data.get("_id") or "",
            score=parse_float_nullable(data.get("_score")),
            source=data.get("_source"),
            fields=data.get("fields"),
            explanation=Explanation.from_dict(explanation) if explanation is not None else None,
            highlight=(
                {name: list(parts or []) for name, parts in highlight.items()}
                if highlight is not None
                else None
            ),
            sort=list(data.get("sort") or []),
        )


@dataclass
class Hits:
    """The hits section of a search answer."""

    total: int = 0
    hits: list[Hit] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Hits:
        data = data or {}
        return cls(
            total=int(data.get("total") or 0),
            hits=[Hit.from_dict(item) for item in data.get("hits") or []],
        )

    def __len__(self) -> int:
        return len(self.hits)


@dataclass
class SuggestionOption:
    """One completion offered for a suggestion."""

    payload: Any = None
    score: float = 0.0
    text: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> SuggestionOption:
        data = data or {}
        return cls(
            payload=data.get("payload"),
            score=parse_float_nullable(data.get("score")),
            text=data.get("text") or "",
        )


@dataclass
class Suggestion:
    """The suggestions for one piece of input text."""

    length: int = 0
    offset: int = 0
    options: list[SuggestionOption] = field(default_factory=list)
    text: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Suggestion:
        data = data or {}
        return cls(
            length=int(data.get("length") or 0),
            offset=int(data.get("offset") or 0),
            options=[SuggestionOption.from_dict(item) for item in data.get("options") or []],
            text=data.get("text") or "",
        )


def _suggestion_list(items: Any) -> list[Suggestion]:
    return [Suggestion.from_dict(item) for item in items or []]


@dataclass
class SearchResult:
    """The answer to a search."""

    raw_json: bytes = b""
    took: int = 0
    timed_out: bool = False
    shard_status: Status = field(default_factory=Status)
    hits: Hits = field(default_factory=Hits)
    facets: Any = None
    scroll_id: str = ""
    aggregations: Any = None
    suggestions: dict[str, list[Suggestion]] = field(default_factory=dict)

    @staticmethod
    def _base_fields(data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "took": int(data.get("took") or 0),
            "timed_out": bool(data.get("timed_out", False)),
            "shard_status": Status.from_dict(data.get("_shards")),
            "hits": Hits.from_dict(data.get("hits")),
            "facets": data.get("facets"),
            "scroll_id": data.get("_scroll_id") or "",
            "aggregations": data.get("aggregations"),
            "suggestions": {
                name: _suggestion_list(items)
                for name, items in (data.get("suggest") or {}).items()
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> SearchResult:
        return cls(**cls._base_fields(data or {}))

    def __str__(self) -> str:
        timed_out = "true" if self.timed_out else "false"
        return f"<Results took={self.took} Timeout={timed_out} hitct={self.hits.total} />"


@dataclass
class SuggestResults:
    """The answer to a suggest request, kept raw until a suggestion is asked for."""

    body: dict[str, Any] = field(default_factory=dict)
    shard_status: Status = field(default_factory=Status)

    def result(self, suggest_name: str) -> list[Suggestion]:
        """The suggestions stored under the given name."""
        if suggest_name not in self.body:
            raise KeyError("No such suggest name found")
        return _suggestion_list(self.body[suggest_name])


@dataclass
class CountResponse:
    """The number of documents a query matches."""

    count: int = 0
    shard: Status = field(default_factory=Status)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> CountResponse:
        data = data or {}
        return cls(
            count=int(data.get("count") or 0),
            shard=Status.from_dict(data.get("_shards")),
        )


@dataclass
class Explaination:
    """Why a query is or is not valid on one index."""

    index: str = ""
    valid: bool = False
    error: str = ""


@dataclass
class Validation:
    """The answer to a query validation."""

    valid: bool = False
    shards: Status = field(default_factory=Status)
    explainations: list[Explaination] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Validation:
        data = data or {}
        return cls(
            valid=bool(data.get("valid", False)),
            shards=Status.from_dict(data.get("_shards")),
            explainations=[
                Explaination(
                    index=item.get("index") or "",
                    valid=bool(item.get("valid", False)),
                    error=item.get("error") or "",
                )
                for item in data.get("explanations") or []
            ],
        )


@dataclass
class MLT:
    """The options of a more-like-this query."""

    fields: list[str] | None = None
    like_text: str = ""
    percent_terms_to_match: float = 0.0
    min_term_frequency: int = 0
    max_query_terms: int = 0
    stop_words: list[str] | None = None
    min_doc_frequency: int = 0
    max_doc_frequency: int = 0
    min_word_length: int = 0
    max_word_length: int = 0
    boost_terms: int = 0
    boost: float = 0.0
    analyzer: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "fields": list(self.fields) if self.fields is not None else None,
            "like_text": self.like_text,
            "percent_terms_to_match": self.percent_terms_to_match,
            "min_term_freq": self.min_term_frequency,
            "max_query_terms": self.max_query_terms,
            "stop_words": list(self.stop_words) if self.stop_words is not None else None,
            "min_doc_freq": self.min_doc_frequency,
            "max_doc_freq": self.max_doc_frequency,
            "min_word_len": self.min_word_length,
            "max_word_len": self.max_word_length,
            "boost_terms": self.boost_terms,
            "boost": self.boost,
            "analyzer": self.analyzer,
        }


@dataclass
class MoreLikeThisQuery:
    """The body of a more-like-this request."""

    more_like_this: MLT = field(default_factory=MLT)

    def to_dict(self) -> dict[str, Any]:
        return {"more_like_this": self.more_like_this.to_dict()}


@dataclass
class PercolatorMatch:
    """A registered query that matched a percolated document."""

    index: str = ""
    doc_id: str = ""


@dataclass
class PercolatorResult(SearchResult):
    """The answer to a percolate request."""

    matches: list[PercolatorMatch] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> PercolatorResult:
        data = data or {}
        return cls(
            **cls._base_fields(data),
            matches=[
                PercolatorMatch(index=item.get("_index") or "", doc_id=item.get("_id") or "")
                for item in data.get("matches") or []
            ],
        )


@dataclass
class IndexStatus:
    """Shard counts for one index."""

    shards: Status = field(default_factory=Status)


@dataclass
class DeleteByQueryResponse:
    """The answer to a delete-by-query, per index."""

    status: bool = False
    indices: dict[str, IndexStatus] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> DeleteByQueryResponse:
        data = data or {}
        return cls(
            status=bool(data.get("ok", False)),
            indices={
                name: IndexStatus(shards=Status.from_dict((item or {}).get("_shards")))
                for name, item in (data.get("_indices") or {}).items()
            },
        )


def _search_path(index: str, doc_type: str) -> str:
    if doc_type and doc_type != "*":
        return f"/{index}/{doc_type}/_search"
    return f"/{index}/_search"


def search(
    conn: Any,
    index: str,
    doc_type: str,
    args: Mapping[str, Any] | None,
    query: Any,
) -> SearchResult:
    """Search an index with a query given as text, a readable stream or a JSON-able value."""
    body = conn.do_command("POST", _search_path(index, doc_type), args, query)
    result = SearchResult.from_dict(_load(body))
    result.raw_json = body
    return result


def search_uri(
    conn: Any,
    index: str,
    doc_type: str,
    args: Mapping[str, Any] | None,
) -> SearchResult:
    """Search with URL arguments only, such as q."""
    body = conn.do_command("GET", _search_path(index, doc_type), args, None)
    result = SearchResult.from_dict(_load(body))
    result.raw_json = body
    return result


def scroll(conn: Any, args: Mapping[str, Any] | None, scroll_id: str) -> SearchResult:
    """Fetch the next page of a scrolled search; args must hold 'scroll'."""
    if not args or "scroll" not in args:
        raise ValueError("Cannot call scroll without 'scroll' in arguments")
    body = conn.do_command("POST", "/_search/scroll", args, scroll_id)
    return SearchResult.from_dict(_load(body))


def suggest(
    conn: Any,
    index: str,
    args: Mapping[str, Any] | None,
    query: Any,
) -> SuggestResults:
    """Ask for suggestions; shard failures in the answer raise ValueError."""
    body = conn.do_command("POST", f"/{index}/_suggest", args, query)
    data = _load(body)
    shards = data.get("_shards")
    if shards is None:
        raise ValueError(
            "Expect response to contain _shards field, got: "
            + body.decode("utf-8", errors="replace")
        )
    status = Status.from_dict(shards)
    if status.failures:
        raise ValueError("Got the following errors:\n" + format_failures(status.failures))
    return SuggestResults(body=data, shard_status=status)


def count(
    conn: Any,
    index: str,
    doc_type: str,
    args: Mapping[str, Any] | None,
    query: Any,
) -> CountResponse:
    """The number of documents matching a query."""
    body = conn.do_command("GET", f"/{index}/{doc_type}/_count", args, query)
    return CountResponse.from_dict(_load(body))


def explain(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None,
    query: str,
) -> Match:
    """A score explanation for a query."""
    path = f"/{index}/{doc_type}/_explain" if doc_type else f"/{index}/_explain"
    body = conn.do_command("GET", path, args, query)
    return Match.from_dict(_load(body))


def validate(
    conn: Any,
    index: str,
    doc_type: str,
    args: Mapping[str, Any] | None,
) -> BaseResponse:
    """Validate a query without running it."""
    path = f"/{index}/{doc_type}/_validate/" if doc_type else f"/{index}/_validate/"
    body = conn.do_command("GET", path, args, None)
    return BaseResponse.from_dict(_load(body))


def more_like_this(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None,
    query: MoreLikeThisQuery,
) -> BaseResponse:
    """Find documents like the given one."""
    body = conn.do_command("GET", f"/{index}/{doc_type}/{doc_id}/_mlt", args, query)
    return BaseResponse.from_dict(_load(body))


def register_percolate(conn: Any, index: str, doc_id: str, data: Any) -> BaseResponse:
    """Register a query to percolate documents against."""
    body = conn.do_command("PUT", f"/{index}/.percolator/{doc_id}", None, data)
    return BaseResponse.from_dict(_load(body))


def percolate(
    conn: Any,
    index: str,
    doc_type: str,
    name: str,
    args: Mapping[str, Any] | None,
    doc: str,
) -> PercolatorResult:
    """The registered queries that match a document."""
    body = conn.do_command("GET", f"/{index}/{doc_type}/_percolate", args, doc)
    return PercolatorResult.from_dict(_load(body))


def delete_by_query(
    conn: Any,
    indices: Sequence[str],
    types: Sequence[str],
    args: Mapping[str, Any] | None,
    query: Any,
) -> BaseResponse:
    """Delete the documents in the given indices and types that match a query."""
    if indices and types:
        path = f"/{','.join(indices)}/{','.join(types)}/_query"
    elif indices:
        path = f"/{','.join(indices)}/_query"
    else:
        path = ""
    body = conn.do_command("DELETE", path, args, query)
    return BaseResponse.from_dict(_load(body))