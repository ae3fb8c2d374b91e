"""Parsing of the plain-text ``_cat`` APIs: indices, shards and nodes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from elastigo.errors import ESError, RecordNotFound

_INT_TEXT = re.compile(r"[+-]?\d+")

DEFAULT_NODE_FIELDS = (
    "host",
    "ip",
    "heap.percent",
    "ram.percent",
    "load",
    "node.role",
    "master",
    "name",
)


class InvalidIndexLineError(ValueError):
    """A ``_cat/indices`` line has too few columns."""

    def __init__(self, message: str = "Cannot parse indexline") -> None:
        super().__init__(message)


class InvalidShardLineError(ValueError):
    """A ``_cat/shards`` line has too few columns."""

    def __init__(self, message: str = "Cannot parse shardline") -> None:
        super().__init__(message)


def _int_or(text: str, fallback: int) -> int:
    return int(text) if _INT_TEXT.fullmatch(text) else fallback


def _strict_int(text: str, name: str) -> int:
    if not _INT_TEXT.fullmatch(text):
        raise ValueError(f"invalid integer {text!r} for field {name}")
    return int(text)


def _int16(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000


def _body_lines(body: bytes) -> list[str]:
    return body.decode("utf-8", errors="replace").split("\n")


@dataclass
class CatIndexDocs:
    """Document counts of an index."""

    count: int = 0
    deleted: int = 0


@dataclass
class CatIndexStore:
    """Store sizes of an index, in bytes."""

    size: int = 0
    pri_size: int = 0


@dataclass
class CatIndexInfo:
    """One line of ``_cat/indices``."""

    health: str = ""
    status: str = ""
    name: str = ""
    shards: int = 0
    replicas: int = 0
    docs: CatIndexDocs = field(default_factory=CatIndexDocs)
    store: CatIndexStore = field(default_factory=CatIndexStore)


@dataclass
class CatShardInfo:
    """One line of ``_cat/shards``."""

    index_name: str = ""
    shard: int = 0
    primary: str = ""
    state: str = ""
    docs: int = 0
    store: int = 0
    node_ip: str = ""
    node_name: str = ""

    def __str__(self) -> str:
        return ":".join(
            str(part)
            for part in (
                self.index_name,
                self.shard,
                self.primary,
                self.state,
                self.docs,
                self.store,
                self.node_ip,
                self.node_name,
            )
        )


@dataclass
class CatNodeInfo:
    """The statistics of one node from ``_cat/nodes``; unrequested fields keep their defaults."""

    id: str = ""
    pid: str = ""
    host: str = ""
    ip: str = ""
    port: str = ""
    version: str = ""
    build: str = ""
    jdk: str = ""
    disk_avail: str = ""
    heap_cur: str = ""
    heap_perc: str = ""
    heap_max: str = ""
    ram_cur: str = ""
    ram_perc: int = 0
    ram_max: str = ""
    file_desc_cur: str = ""
    file_desc_perc: str = ""
    file_desc_max: str = ""
    load: str = ""
    up_time: str = ""
    node_role: str = ""
    master: str = ""
    name: str = ""
    cmplt_size: str = ""
    field_mem: int = 0
    field_evict: int = 0
    filt_mem: int = 0
    filt_evict: int = 0
    flush_total: int = 0
    flush_total_time: str = ""
    get_cur: str = ""
    get_time: str = ""
    get_total: str = ""
    get_exists_time: str = ""
    get_exists_total: str = ""
    get_missing_time: str = ""
    get_missing_total: str = ""
    id_cache_memory: int = 0
    idx_del_cur: str = ""
    idx_del_time: str = ""
    idx_del_total: str = ""
    idx_idx_cur: str = ""
    idx_idx_time: str = ""
    idx_idx_total: str = ""
    merg_cur: str = ""
    merg_cur_docs: str = ""
    merg_cur_size: str = ""
    merg_total: str = ""
    merg_total_docs: str = ""
    merg_total_size: str = ""
    merg_total_time: str = ""
    perc_cur: str = ""
    perc_mem: str = ""
    perc_queries: str = ""
    perc_time: str = ""
    perc_total: str = ""
    refresh_total: str = ""
    refresh_time: str = ""
    search_fetch_cur: str = ""
    search_fetch_time: str = ""
    search_fetch_total: str = ""
    search_open_contexts: str = ""
    search_query_cur: str = ""
    search_query_time: str = ""
    search_query_total: str = ""
    seg_count: str = ""
    seg_mem: str = ""
    seg_idx_writer_mem: str = ""
    seg_idx_writer_max: str = ""
    seg_ver_map_mem: str = ""


# attribute name, kind ("str", "int", "int16" or "rest"), accepted column names
_NODE_COLUMNS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("id", "str", ("id", "nodeId")),
    ("pid", "str", ("pid", "p")),
    ("host", "str", ("host", "h")),
    ("ip", "str", ("ip", "i")),
    ("port", "str", ("port", "po")),
    ("version", "str", ("version", "v")),
    ("build", "str", ("build", "b")),
    ("jdk", "str", ("jdk", "j")),
    ("disk_avail", "str", ("disk.avail", "d", "disk", "diskAvail")),
    ("heap_cur", "str", ("heap.current", "hc", "heapCurrent")),
    ("heap_perc", "str", ("heap.percent", "hp", "heapPercent")),
    ("heap_max", "str", ("heap.max", "hm", "heapMax")),
    ("ram_cur", "str", ("ram.current", "rc", "ramCurrent")),
    ("ram_perc", "int16", ("ram.percent", "rp", "ramPercent")),
    ("ram_max", "str", ("ram.max", "rm", "ramMax")),
    ("file_desc_cur", "str", ("file_desc.current", "fdc", "fileDescriptorCurrent")),
    ("file_desc_perc", "str", ("file_desc.percent", "fdp", "fileDescriptorPercent")),
    ("file_desc_max", "str", ("file_desc.max", "fdm", "fileDescriptorMax")),
    ("load", "str", ("load", "l")),
    ("up_time", "str", ("uptime", "u")),
    ("node_role", "str", ("node.role", "r", "role", "dc", "nodeRole")),
    ("master", "str", ("master", "m")),
    ("name", "rest", ("name", "n")),
    ("cmplt_size", "str", ("completion.size", "cs", "completionSize")),
    ("field_mem", "int", ("fielddata.memory_size", "fm", "fielddataMemory")),
    ("field_evict", "int", ("fielddata.evictions", "fe", "fieldataEvictions")),
    ("filt_mem", "int", ("filter_cache.memory_size", "fcm", "filterCacheMemory")),
    ("filt_evict", "int", ("filter_cache.evictions", "fce", "filterCacheEvictions")),
    ("flush_total", "int", ("flush.total", "ft", "flushTotal")),
    ("flush_total_time", "str", ("flush.total_time", "ftt", "flushTotalTime")),
    ("get_cur", "str", ("get.current", "gc", "getCurrent")),
    ("get_time", "str", ("get.time", "gti", "getTime")),
    ("get_total", "str", ("get.total", "gto", "getTotal")),
    ("get_exists_time", "str", ("get.exists_time", "geti", "getExistsTime")),
    ("get_exists_total", "str", ("get.exists_total", "geto", "getExistsTotal")),
    ("get_missing_time", "str", ("get.missing_time", "gmti", "getMissingTime")),
    ("get_missing_total", "str", ("get.missing_total", "gmto", "getMissingTotal")),
    ("id_cache_memory", "int", ("id_cache.memory_size", "im", "idCacheMemory")),
    ("idx_del_cur", "str", ("indexing.delete_current", "idc", "indexingDeleteCurrent")),
    ("idx_del_time", "str", ("indexing.delete_time", "idti", "indexingDeleteime")),
    ("idx_del_total", "str", ("indexing.delete_total", "idto", "indexingDeleteTotal")),
    ("idx_idx_cur", "str", ("indexing.index_current", "iic", "indexingIndexCurrent")),
    ("idx_idx_time", "str", ("indexing.index_time", "iiti", "indexingIndexTime")),
    ("idx_idx_total", "str", ("indexing.index_total", "iito", "indexingIndexTotal")),
    ("merg_cur", "str", ("merges.current", "mc", "mergesCurrent")),
    ("merg_cur_docs", "str", ("merges.current_docs", "mcd", "mergesCurrentDocs")),
    ("merg_cur_size", "str", ("merges.current_size", "mcs", "mergesCurrentSize")),
    ("merg_total", "str", ("merges.total", "mt", "mergesTotal")),
    ("merg_total_docs", "str", ("merges.total_docs", "mtd", "mergesTotalDocs")),
    ("merg_total_size", "str", ("merges.total_size", "mts", "mergesTotalSize")),
    ("merg_total_time", "str", ("merges.total_time", "mtt", "mergesTotalTime")),
    ("perc_cur", "str", ("percolate.current", "pc", "percolateCurrent")),
    ("perc_mem", "str", ("percolate.memory_size", "pm", "percolateMemory")),
    ("perc_queries", "str", ("percolate.queries", "pq", "percolateQueries")),
    ("perc_time", "str", ("percolate.time", "pti", "percolateTime")),
    ("perc_total", "str", ("percolate.total", "pto", "percolateTotal")),
    ("refresh_total", "str", ("refesh.total", "rto", "refreshTotal")),
    ("refresh_time", "str", ("refresh.time", "rti", "refreshTime")),
    ("search_fetch_cur", "str", ("search.fetch_current", "sfc", "searchFetchCurrent")),
    ("search_fetch_time", "str", ("search.fetch_time", "sfti", "searchFetchTime")),
    ("search_fetch_total", "str", ("search.fetch_total", "sfto", "searchFetchTotal")),
    ("search_open_contexts", "str", ("search.open_contexts", "so", "searchOpenContexts")),
    ("search_query_cur", "str", ("search.query_current", "sqc", "searchQueryCurrent")),
    ("search_query_time", "str", ("search.query_time", "sqti", "searchQueryTime")),
    ("search_query_total", "str", ("search.query_total", "sqto", "searchQueryTotal")),
    ("seg_count", "str", ("segments.count", "sc", "segmentsCount")),
    ("seg_mem", "str", ("segments.memory", "sm", "segmentsMemory")),
    ("seg_idx_writer_mem", "str", ("segments.index_writer_memory", "siwm", "segmentsIndexWriterMemory")),
    ("seg_idx_writer_max", "str", ("segments.index_writer_max_memory", "siwmx", "segmentsIndexWriterMaxMemory")),
    ("seg_ver_map_mem", "str", ("segments.version_map_memory", "svmm", "segmentsVersionMapMemory")),
)

_NODE_COLUMN_LOOKUP: dict[str, tuple[str, str]] = {
    alias: (attr, kind) for attr, kind, aliases in _NODE_COLUMNS for alias in aliases
}


def parse_cat_index_info(line: str) -> CatIndexInfo:
    """Read one line of ``_cat/indices``; unreadable numbers become 0."""
    parts = line.split()
    if len(parts) < 5:
        raise InvalidIndexLineError()
    info = CatIndexInfo(
        health=parts[0],
        status=parts[1],
        name=parts[2],
        shards=_int_or(parts[3], 0),
        replicas=_int_or(parts[4], 0),
    )
    numbers = [_int_or(text, 0) for text in parts[5:9]]
    numbers += [0] * (4 - len(numbers))
    info.docs = CatIndexDocs(count=numbers[0], deleted=numbers[1])
    info.store = CatIndexStore(size=numbers[2], pri_size=numbers[3])
    return info


def parse_cat_shard_info(line: str) -> CatShardInfo:
    """Read one line of ``_cat/shards``; an unreadable shard number becomes -1."""
    parts = line.split()
    if len(parts) < 4:
        raise InvalidShardLineError()
    shard = CatShardInfo(
        index_name=parts[0],
        shard=_int_or(parts[1], -1),
        primary=parts[2],
        state=parts[3],
    )
    if len(parts) > 4:
        shard.docs = _int_or(parts[4], 0)
    if len(parts) > 5:
        shard.store = _int_or(parts[5], 0)
    if len(parts) > 6:
        shard.node_ip = parts[6]
    if len(parts) > 7:
        name_parts = [parts[7]]
        for word in parts[8:]:
            if word == "->":
                break
            name_parts.append(word)
        shard.node_name = " ".join(name_parts)
    return shard


def format_cat_shard(shard: CatShardInfo | None) -> str:
    """Render a shard as colon-separated columns; a missing shard renders empty columns."""
    if shard is None:
        return ":::::::"
    return str(shard)


def format_cat_shards(shards: Iterable[CatShardInfo] | None) -> str:
    """Render several shards, one per line."""
    if shards is None:
        return ""
    return "".join(f"{format_cat_shard(shard)}\n" for shard in shards)


def parse_cat_node_info(fields: Sequence[str], line: str) -> CatNodeInfo:
    """Read one line of ``_cat/nodes`` whose columns are the given fields.

    The name column takes the rest of the line, so it belongs last.
    """
    parts = line.split()
    if len(fields) > len(parts):
        raise ValueError(
            f"Number of fields ({len(fields)}) greater than number of stats ({len(parts)})"
        )
    node = CatNodeInfo()
    for position, (column, text) in enumerate(zip(fields, parts)):
        try:
            attr, kind = _NODE_COLUMN_LOOKUP[column]
        except KeyError:
            raise ValueError(f"Invalid cat nodes field: {column}") from None
        if kind == "str":
            value: Any = text
        elif kind == "rest":
            value = " ".join(parts[position:])
        elif kind == "int16":
            value = _int16(_strict_int(text, column))
        else:
            value = _strict_int(text, column)
        setattr(node, attr, value)
    return node


def _fetch(conn: Any, path: str, args: dict[str, Any]) -> bytes | None:
    try:
        return conn.do_command("GET", path, args, None)
    except (ESError, RecordNotFound, OSError, ValueError):
        return None


def get_cat_index_info(conn: Any, pattern: str = "") -> list[CatIndexInfo]:
    """Fetch the indices matching a pattern; a failed request yields an empty list."""
    args = {
        "bytes": "b",
        "h": "health,status,index,pri,rep,docs.count,docs.deleted,store.size,pri.store.size",
    }
    body = _fetch(conn, "/_cat/indices/" + pattern, args)
    if body is None:
        return []
    indices = []
    for line in _body_lines(body):
        try:
            indices.append(parse_cat_index_info(line))
        except InvalidIndexLineError:
            continue
    return indices


def get_cat_shards(conn: Any) -> list[CatShardInfo]:
    """Fetch all shards, unassigned ones included; a failed request yields an empty list."""
    args = {"bytes": "b", "h": "index,shard,prirep,state,docs,store,ip,node"}
    body = _fetch(conn, "/_cat/shards", args)
    if body is None:
        return []
    shards = []
    for line in _body_lines(body):
        try:
            shards.append(parse_cat_shard_info(line))
        except InvalidShardLineError:
            continue
    return shards


def get_cat_node_info(conn: Any, fields: Sequence[str] | None = None) -> list[CatNodeInfo]:
    """Fetch the requested statistics of every node.

    With no fields the default column set is used. Unknown fields or unreadable
    numeric columns raise ValueError.
    """
    columns = list(fields) if fields else list(DEFAULT_NODE_FIELDS)
    args = {"bytes": "b", "h": ",".join(columns)}
    body = conn.do_command("GET", "/_cat/nodes/", args, None)
    return [parse_cat_node_info(columns, line) for line in _body_lines(body) if line]