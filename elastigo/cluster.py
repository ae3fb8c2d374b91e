"""Cluster-level API calls: health, state, settings, rerouting and shutdown."""

from __future__ import annotations

import dataclasses
import json
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence, Union

SETTING_TYPES = ("transient", "persistent")


def _load(body: bytes) -> dict:
    data = json.loads(body)
    return data if isinstance(data, dict) else {}


@dataclass
class ClusterHealthResponse:
    """A short summary of the cluster's health."""

    cluster_name: str = ""
    status: str = ""
    timed_out: bool = False
    number_of_nodes: int = 0
    number_of_data_nodes: int = 0
    active_primary_shards: int = 0
    active_shards: int = 0
    relocating_shards: int = 0
    initializing_shards: int = 0
    unassigned_shards: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ClusterHealthResponse:
        data = data or {}
        return cls(
            cluster_name=data.get("cluster_name") or "",
            status=data.get("status") or "",
            timed_out=bool(data.get("timed_out", False)),
            number_of_nodes=int(data.get("number_of_nodes") or 0),
            number_of_data_nodes=int(data.get("number_of_data_nodes") or 0),
            active_primary_shards=int(data.get("active_primary_shards") or 0),
            active_shards=int(data.get("active_shards") or 0),
            relocating_shards=int(data.get("relocating_shards") or 0),
            initializing_shards=int(data.get("initializing_shards") or 0),
            unassigned_shards=int(data.get("unassigned_shards") or 0),
        )


@dataclass
class ClusterStateNodeResponse:
    """A node as listed in the cluster state."""

    name: str = ""
    transport_address: str = ""


@dataclass
class ClusterStateIndiceResponse:
    """An index as listed in the cluster state metadata."""

    state: str = ""


@dataclass
class ClusterStateMetadataResponse:
    """The metadata part of the cluster state."""

    indices: dict[str, ClusterStateIndiceResponse] = field(default_factory=dict)


@dataclass
class ClusterStateResponse:
    """The state of the whole cluster."""

    cluster_name: str = ""
    master_node: str = ""
    nodes: dict[str, ClusterStateNodeResponse] = field(default_factory=dict)
    metadata: ClusterStateMetadataResponse = field(default_factory=ClusterStateMetadataResponse)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ClusterStateResponse:
        data = data or {}
        nodes = {
            node_id: ClusterStateNodeResponse(
                name=(node or {}).get("name") or "",
                transport_address=(node or {}).get("transport_address") or "",
            )
            for node_id, node in (data.get("nodes") or {}).items()
        }
        metadata = data.get("metadata") or {}
        indices = {
            name: ClusterStateIndiceResponse(state=(index or {}).get("state") or "")
            for name, index in (metadata.get("indices") or {}).items()
        }
        return cls(
            cluster_name=data.get("cluster_name") or "",
            master_node=data.get("master_node") or "",
            nodes=nodes,
            metadata=ClusterStateMetadataResponse(indices=indices),
        )


@dataclass
class ClusterStateFilter:
    """Which parts of the cluster state to leave out."""

    filter_nodes: bool = False
    filter_routing_table: bool = False
    filter_metadata: bool = False
    filter_blocks: bool = False
    filter_indices: list[str] = field(default_factory=list)

    def parameterize(self) -> list[str]:
        """The query-string parts that express this filter."""
        parts = []
        if self.filter_nodes:
            parts.append("filter_nodes=true")
        if self.filter_routing_table:
            parts.append("filter_routing_table=true")
        if self.filter_metadata:
            parts.append("filter_metadata=true")
        if self.filter_blocks:
            parts.append("filter_blocks=true")
        if self.filter_indices:
            parts.append("filter_indices=" + ",".join(self.filter_indices))
        return parts


@dataclass
class ClusterSettingsResponse:
    """Cluster-wide settings, split by how long they last."""

    transient: dict[str, int] = field(default_factory=dict)
    persistent: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ClusterSettingsResponse:
        data = data or {}
        return cls(
            transient=dict(data.get("transient") or {}),
            persistent=dict(data.get("persistent") or {}),
        )


@dataclass
class MoveCommand:
    """Move a shard from one node to another."""

    index: str
    shard: str
    from_node: str
    to_node: str


@dataclass
class CancelCommand:
    """Cancel the allocation of a shard."""

    index: str
    shard: str
    node: str
    allow_primary: bool = False


@dataclass
class AllocateCommand:
    """Allocate an unassigned shard to a node."""

    index: str
    shard: str
    node: str
    allow_primary: bool = False


RerouteCommand = Union[MoveCommand, CancelCommand, AllocateCommand]


def _command_dict(command: RerouteCommand) -> dict[str, Any]:
    data = dataclasses.asdict(command)
    if not data.get("allow_primary", True):
        del data["allow_primary"]
    return data


def _health_path(indices: Sequence[str]) -> str:
    if indices:
        return "/_cluster/health/" + ",".join(indices)
    return "/_cluster/health"


def health(conn: Any, *args: str) -> ClusterHealthResponse:
    """The health of the cluster, or of the given indices."""
    body = conn.do_command("GET", _health_path(args), None, None)
    return ClusterHealthResponse.from_dict(_load(body))


def wait_for_status(conn: Any, status: str, timeout: int, *args: str) -> ClusterHealthResponse:
    """Ask for the cluster health, waiting for the given status."""
    body = conn.do_command(
        "GET",
        _health_path(args),
        {"wait_for_status": status, "timout": timeout},
        None,
    )
    return ClusterHealthResponse.from_dict(_load(body))


def cluster_state(conn: Any, state_filter: ClusterStateFilter) -> ClusterStateResponse:
    """The cluster state, filtered as requested."""
    path = "/_cluster/state?" + "&".join(state_filter.parameterize())
    body = conn.do_command("GET", path, None, None)
    return ClusterStateResponse.from_dict(_load(body))


def update_setting(
    conn: Any, args: Mapping[str, Any] | None, *filter_indices: str
) -> ClusterStateResponse:
    """Fetch the cluster state with the given URL arguments."""
    body = conn.do_command("GET", "/_cluster/state", args, None)
    return ClusterStateResponse.from_dict(_load(body))


def update_settings(conn: Any, setting_type: str, key: str, value: int) -> ClusterSettingsResponse:
    """Change one cluster-wide setting, transient or persistent."""
    if setting_type not in SETTING_TYPES:
        raise ValueError(
            "settingType must be one of transient or persistent, "
            f"you passed {setting_type}"
        )
    body = conn.do_command("PUT", "/_cluster/state", None, {setting_type: {key: value}})
    return ClusterSettingsResponse.from_dict(_load(body))


def reroute(conn: Any, dry_run: bool, commands: Iterable[RerouteCommand]) -> ClusterHealthResponse:
    """Send explicit shard allocation commands to the cluster."""
    command_list = [_command_dict(command) for command in commands]
    if not command_list:
        raise ValueError("Must pass at least one command")
    args = {"dry_run": True} if dry_run else None
    body = conn.do_command("POST", "/_cluster/reroute", args, {"commands": command_list})
    return ClusterHealthResponse.from_dict(_load(body))


def nodes_shutdown(conn: Any, delay: int, *args: str) -> None:
    """Shut down the given nodes, all of them for '' or '_all', after delay seconds."""
    path = f"/_cluster/nodes/{','.join(args)}/_shutdown"
    if delay > 0:
        path += "?" + urllib.parse.urlencode({"delay": str(delay)})
    conn.do_command("POST", path, None, None)