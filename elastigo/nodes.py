"""The cluster nodes info API."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from typing import Any, Mapping, Sequence, TypeVar

_T = TypeVar("_T")


def _flat(cls: type[_T], data: Mapping[str, Any] | None) -> _T:
    """Build a dataclass whose field names are the JSON keys."""
    data = data or {}
    kwargs = {
        f.name: data[f.name]
        for f in fields(cls)  # type: ignore[arg-type]
        if data.get(f.name) is not None
    }
    return cls(**kwargs)


def _optional(builder, data: Any):
    return builder(data) if data is not None else None


@dataclass
class Path:
    logs: str = ""
    home: str = ""


@dataclass
class Settings:
    path: Path | None = None
    foreground: str = ""
    name: str = ""


@dataclass
class CPU:
    vendor: str = ""
    model: str = ""
    mhz: int = 0
    total_cores: int = 0
    total_sockets: int = 0
    cores_per_socket: int = 0
    cache_size_in_bytes: int = 0


@dataclass
class OS:
    refresh_interval: int = 0
    available_processors: int = 0
    cpu: CPU | None = None


@dataclass
class Process:
    refresh_interval: int = 0
    id: int = 0
    max_file_descriptors: int = 0
    mlockall: bool = False


@dataclass
class JvmMem:
    heap_init_in_bytes: int = 0
    heap_max_in_bytes: int = 0
    non_heap_init_in_bytes: int = 0
    non_heap_max_in_bytes: int = 0
    direct_max_in_bytes: int = 0


@dataclass
class JVM:
    pid: int = 0
    version: str = ""
    vm_name: str = ""
    vm_version: str = ""
    vm_vendor: str = ""
    start_time: int = 0
    mem: JvmMem | None = None
    gc_collectors: list[str] | None = None
    memory_pools: list[str] | None = None


@dataclass
class ThreadPoolConfig:
    type: str = ""
    min: int = 0
    max: int = 0
    queue_size: Any = None  # either a string or -1
    keep_alive: str = ""


@dataclass
class ThreadPool:
    generic: ThreadPoolConfig | None = None
    index: ThreadPoolConfig | None = None
    get: ThreadPoolConfig | None = None
    snapshot: ThreadPoolConfig | None = None
    merge: ThreadPoolConfig | None = None
    suggest: ThreadPoolConfig | None = None
    bulk: ThreadPoolConfig | None = None
    optimize: ThreadPoolConfig | None = None
    warmer: ThreadPoolConfig | None = None
    flush: ThreadPoolConfig | None = None
    search: ThreadPoolConfig | None = None
    percolate: ThreadPoolConfig | None = None
    management: ThreadPoolConfig | None = None
    refresh: ThreadPoolConfig | None = None


@dataclass
class Interface:
    address: str = ""
    name: str = ""
    mac_address: str = ""


@dataclass
class Network:
    refresh_interval: int = 0
    primary_interface: Interface | None = None


@dataclass
class Transport:
    bound_address: str = ""
    publish_address: str = ""


@dataclass
class Http:
    bound_address: str = ""
    publish_address: str = ""


@dataclass
class Plugin:
    name: str = ""
    description: str = ""
    site: bool = False
    jvm: bool = False
    url: str = ""


def _settings(data: Mapping[str, Any]) -> Settings:
    return Settings(
        path=_optional(lambda d: _flat(Path, d), data.get("path")),
        foreground=str(data.get("foreground") or ""),
        name=data.get("name") or "",
    )


def _os(data: Mapping[str, Any]) -> OS:
    return OS(
        refresh_interval=data.get("refresh_interval") or 0,
        available_processors=data.get("available_processors") or 0,
        cpu=_optional(lambda d: _flat(CPU, d), data.get("cpu")),
    )


def _jvm(data: Mapping[str, Any]) -> JVM:
    jvm = _flat(JVM, {k: v for k, v in data.items() if k != "mem"})
    jvm.mem = _optional(lambda d: _flat(JvmMem, d), data.get("mem"))
    return jvm


def _thread_pool(data: Mapping[str, Any]) -> ThreadPool:
    return ThreadPool(
        **{
            f.name: _flat(ThreadPoolConfig, data[f.name])
            for f in fields(ThreadPool)
            if data.get(f.name) is not None
        }
    )


def _network(data: Mapping[str, Any]) -> Network:
    return Network(
        refresh_interval=data.get("refresh_interval") or 0,
        primary_interface=_optional(lambda d: _flat(Interface, d), data.get("primary_interface")),
    )


@dataclass
class Node:
    """The information one node reports about itself."""

    name: str = ""
    transport_address: str = ""
    host: str = ""
    ip: str = ""
    version: str = ""
    build: str = ""
    hostname: str = ""
    http_address: str = ""
    settings: Settings | None = None
    os: OS | None = None
    process: Process | None = None
    jvm: JVM | None = None
    thread_pool: ThreadPool | None = None
    network: Network | None = None
    transport: Transport | None = None
    http: Http | None = None
    plugins: list[Plugin] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Node:
        data = data or {}
        plugins = data.get("plugins")
        return cls(
            name=data.get("name") or "",
            transport_address=data.get("transport_address") or "",
            host=data.get("host") or "",
            ip=data.get("ip") or "",
            version=data.get("version") or "",
            build=data.get("build") or "",
            hostname=data.get("hostname") or "",
            http_address=data.get("http_address") or "",
            settings=_optional(_settings, data.get("settings")),
            os=_optional(_os, data.get("os")),
            process=_optional(lambda d: _flat(Process, d), data.get("process")),
            jvm=_optional(_jvm, data.get("jvm")),
            thread_pool=_optional(_thread_pool, data.get("thread_pool")),
            network=_optional(_network, data.get("network")),
            transport=_optional(lambda d: _flat(Transport, d), data.get("transport")),
            http=_optional(lambda d: _flat(Http, d), data.get("http")),
            plugins=[_flat(Plugin, item) for item in plugins] if plugins is not None else None,
        )


@dataclass
class NodeInfo:
    """The nodes of a cluster, keyed by node id."""

    cluster_name: str = ""
    nodes: dict[str, Node] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> NodeInfo:
        data = data or {}
        nodes = data.get("nodes")
        return cls(
            cluster_name=data.get("cluster_name") or "",
            nodes=(
                {node_id: Node.from_dict(node) for node_id, node in nodes.items()}
                if nodes is not None
                else None
            ),
        )


def nodes_info(conn: Any, information: Sequence[str], *args: str) -> NodeInfo:
    """Information of the given kinds (such as jvm, process) about the given nodes."""
    path = f"/_nodes/{','.join(args)}/{','.join(information)}"
    body = conn.do_command("GET", path, None, None)
    data = json.loads(body)
    return NodeInfo.from_dict(data if isinstance(data, dict) else None)


def all_nodes_info(conn: Any) -> NodeInfo:
    """All information about every node."""
    return nodes_info(conn, ["_all"], "_all")