"""Document operations: get, index, delete, update and multi-get."""

from __future__ import annotations

import json
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from elastigo.connection import encode_query
from elastigo.errors import RecordNotFound
from elastigo.responses import BaseResponse

HTTP_OK = 200


def _load(body: bytes) -> Any:
    return json.loads(body)


def _response(body: bytes) -> BaseResponse:
    data = _load(body)
    return BaseResponse.from_dict(data if isinstance(data, dict) else None)


def _doc_path(index: str, doc_type: str, doc_id: str) -> str:
    if doc_type:
        return f"/{index}/{doc_type}/{doc_id}"
    return f"/{index}/{doc_id}"


@dataclass
class MGetRequest:
    """One document asked for in a multi-get."""

    index: str = ""
    doc_type: str = ""
    doc_id: str = ""
    ids: list[str] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "_index": self.index,
            "_type": self.doc_type,
            "_id": self.doc_id,
        }
        if self.ids:
            data["_ids"] = list(self.ids)
        if self.fields:
            data["fields"] = list(self.fields)
        return data


@dataclass
class MGetRequestContainer:
    """The body of a multi-get request."""

    docs: list[MGetRequest] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"docs": [doc.to_dict() for doc in self.docs]}


@dataclass
class MGetResponseContainer:
    """The documents returned by a multi-get."""

    docs: list[BaseResponse] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> MGetResponseContainer:
        data = data or {}
        return cls(docs=[BaseResponse.from_dict(item) for item in data.get("docs") or []])


def get(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None = None,
) -> BaseResponse:
    """Fetch a document by id."""
    return get_custom(conn, index, doc_type, doc_id, args, None)


def get_custom(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None,
    source: Any,
) -> BaseResponse:
    """Fetch a document by id; the given source stays when the answer carries none."""
    body = conn.do_command("GET", _doc_path(index, doc_type, doc_id), args, None)
    data = _load(body)
    response = BaseResponse.from_dict(data if isinstance(data, dict) else None)
    if not isinstance(data, dict) or "_source" not in data:
        response.source = source
    return response


def get_source(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None = None,
) -> Any:
    """Fetch only the source of a document, decoded from JSON."""
    body = conn.do_command("GET", f"/{index}/{doc_type}/{doc_id}/_source", args, None)
    return _load(body)


def exists_bool(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None = None,
) -> bool:
    """Whether a document exists, checked with a HEAD request."""
    query = encode_query(args)
    request = conn.new_request("HEAD", _doc_path(index, doc_type, doc_id), query)
    try:
        status, _ = request.send()
    except RecordNotFound:
        return False
    return status == HTTP_OK


def exists_index(
    conn: Any,
    index: str,
    doc_type: str,
    args: Mapping[str, Any] | None = None,
) -> bool:
    """Whether an index, or a type within it, exists."""
    query = encode_query(args)
    path = f"/{index}/{doc_type}" if doc_type else f"/{index}"
    status, _ = conn.new_request("HEAD", path, query).send()
    return status == HTTP_OK


def get_index_url(
    index: str,
    doc_type: str = "",
    doc_id: str = "",
    parent_id: str = "",
    version: int = 0,
    op_type: str = "",
    routing: str = "",
    timestamp: str = "",
    ttl: int = 0,
    percolate: str = "",
    timeout: str = "",
    refresh: bool = False,
) -> str:
    """The path and query string for indexing a document."""
    if not index:
        raise ValueError("index can not be blank")
    if not doc_type and doc_id:
        raise ValueError("Can't specify id when _type is blank")
    if doc_type and doc_id:
        path = f"/{index}/{doc_type}/{doc_id}"
    elif doc_type:
        path = f"/{index}/{doc_type}"
    else:
        path = f"/{index}"

    values: dict[str, str] = {}
    if parent_id:
        values["parent"] = parent_id
    if version > 0:
        values["version"] = str(version)
    if op_type:
        values["op_type"] = op_type if doc_id else "create"
    if routing:
        values["routing"] = routing
    if timestamp:
        values["timestamp"] = timestamp
    if ttl > 0:
        values["ttl"] = str(ttl)
    if percolate:
        values["percolate"] = percolate
    if timeout:
        values["timeout"] = timeout
    if refresh:
        values["refresh"] = "true"
    return path + "?" + urllib.parse.urlencode(sorted(values.items()))


def index_with_parameters(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    parent_id: str,
    version: int,
    op_type: str,
    routing: str,
    timestamp: str,
    ttl: int,
    percolate: str,
    timeout: str,
    refresh: bool,
    args: Mapping[str, Any] | None,
    data: Any,
) -> BaseResponse:
    """Index a document with every option the API offers."""
    path = get_index_url(
        index, doc_type, doc_id, parent_id, version, op_type,
        routing, timestamp, ttl, percolate, timeout, refresh,
    )
    method = "PUT" if doc_id else "POST"
    return _response(conn.do_command(method, path, args, data))


def index_document(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None,
    data: Any,
) -> BaseResponse:
    """Add or replace a document, creating the index if needed."""
    return index_with_parameters(
        conn, index, doc_type, doc_id, "", 0, "", "", "", 0, "", "", False, args, data
    )


def delete(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None = None,
) -> BaseResponse:
    """Delete a document by id."""
    body = conn.do_command("DELETE", f"/{index}/{doc_type}/{doc_id}", args, None)
    return _response(body)


def update(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None,
    data: Any,
) -> BaseResponse:
    """Send an update request with the given body."""
    body = conn.do_command("POST", f"/{index}/{doc_type}/{doc_id}/_update", args, data)
    return _response(body)


def update_with_partial_doc(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None,
    doc: Any,
    upsert: bool,
) -> BaseResponse:
    """Merge a partial document into a stored one, optionally inserting it."""
    if isinstance(doc, str):
        upsert_text = ', "doc_as_upsert":true' if upsert else ""
        return update(conn, index, doc_type, doc_id, args, f'{{"doc":{doc} {upsert_text}}}')
    data: dict[str, Any] = {"doc": doc}
    if upsert:
        data["doc_as_upsert"] = True
    return update(conn, index, doc_type, doc_id, args, data)


def update_with_script(
    conn: Any,
    index: str,
    doc_type: str,
    doc_id: str,
    args: Mapping[str, Any] | None,
    script: str,
    params: Any,
) -> BaseResponse:
    """Update a document by running a script with parameters."""
    if isinstance(params, str):
        params_part = f'{{"params":{params}}}'
        data = f'{{"script":"{script}", "params":{params_part}}}'
        return update(conn, index, doc_type, doc_id, args, data)
    return update(conn, index, doc_type, doc_id, args, {"params": params, "script": script})


def mget(
    conn: Any,
    index: str,
    doc_type: str,
    request: MGetRequestContainer,
    args: Mapping[str, Any] | None = None,
) -> MGetResponseContainer:
    """Fetch several documents in one request."""
    if not index:
        path = "/_mget"
    elif doc_type:
        path = f"/{index}/{doc_type}/_mget"
    else:
        path = f"/{index}/_mget"
    body = conn.do_command("GET", path, args, request)
    data = _load(body)
    return MGetResponseContainer.from_dict(data if isinstance(data, dict) else None)


__all__: Sequence[str] = (
    "MGetRequest",
    "MGetRequestContainer",
    "MGetResponseContainer",
    "get",
    "get_custom",
    "get_source",
    "exists_bool",
    "exists_index",
    "index_document",
    "index_with_parameters",
    "get_index_url",
    "delete",
    "update",
    "update_with_partial_doc",
    "update_with_script",
    "mget",
)