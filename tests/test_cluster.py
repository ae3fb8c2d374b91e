import json
from datetime import datetime

import pytest

from elastigo.cluster import (
    AllocateCommand,
    CancelCommand,
    ClusterHealthResponse,
    ClusterSettingsResponse,
    ClusterStateFilter,
    ClusterStateResponse,
    MoveCommand,
    cluster_state,
    health,
    nodes_shutdown,
    reroute,
    update_setting,
    update_settings,
    wait_for_status,
)
from elastigo.errors import ESError


class FakeConn:
    def __init__(self, payload=None, error=None):
        self.body = json.dumps(payload if payload is not None else {}).encode()
        self.error = error
        self.calls = []

    def do_command(self, method, path, args=None, data=None):
        self.calls.append((method, path, args, data))
        if self.error is not None:
            raise self.error
        return self.body


HEALTH = {
    "cluster_name": "testcluster",
    "status": "green",
    "timed_out": False,
    "number_of_nodes": 3,
    "number_of_data_nodes": 2,
    "active_primary_shards": 5,
    "active_shards": 10,
    "relocating_shards": 0,
    "initializing_shards": 1,
    "unassigned_shards": 4,
}


def test_health_parses_response():
    conn = FakeConn(HEALTH)
    result = health(conn)
    assert conn.calls == [("GET", "/_cluster/health", None, None)]
    assert result.cluster_name == "testcluster"
    assert result.status == "green"
    assert result.number_of_nodes == 3
    assert result.unassigned_shards == 4


def test_health_with_indices_joins_them():
    conn = FakeConn(HEALTH)
    health(conn, "a", "b")
    assert conn.calls[0][1] == "/_cluster/health/a,b"


def test_health_propagates_server_error():
    conn = FakeConn(error=ESError(datetime.now(), "boom", 500))
    with pytest.raises(ESError):
        health(conn)


def test_health_rejects_bad_json():
    conn = FakeConn()
    conn.body = b"not json"
    with pytest.raises(ValueError):
        health(conn)


def test_wait_for_status_sends_arguments():
    conn = FakeConn(HEALTH)
    result = wait_for_status(conn, "yellow", 30, "idx")
    method, path, args, _ = conn.calls[0]
    assert (method, path) == ("GET", "/_cluster/health/idx")
    assert args == {"wait_for_status": "yellow", "timout": 30}
    assert result.active_shards == 10


def test_health_response_defaults_from_empty():
    assert ClusterHealthResponse.from_dict({}) == ClusterHealthResponse()


def test_filter_parameterize_all_parts():
    state_filter = ClusterStateFilter(
        filter_nodes=True,
        filter_routing_table=True,
        filter_metadata=True,
        filter_blocks=True,
        filter_indices=["a", "b"],
    )
    assert state_filter.parameterize() == [
        "filter_nodes=true",
        "filter_routing_table=true",
        "filter_metadata=true",
        "filter_blocks=true",
        "filter_indices=a,b",
    ]


def test_filter_parameterize_empty():
    assert ClusterStateFilter().parameterize() == []


def test_cluster_state_path_and_parse():
    payload = {
        "cluster_name": "c1",
        "master_node": "n1",
        "nodes": {"n1": {"name": "alpha", "transport_address": "inet[/10.0.0.1:9300]"}},
        "metadata": {"indices": {"logs": {"state": "open"}}},
    }
    conn = FakeConn(payload)
    result = cluster_state(conn, ClusterStateFilter(filter_nodes=True, filter_indices=["x"]))
    assert conn.calls[0][1] == "/_cluster/state?filter_nodes=true&filter_indices=x"
    assert result.master_node == "n1"
    assert result.nodes["n1"].name == "alpha"
    assert result.nodes["n1"].transport_address == "inet[/10.0.0.1:9300]"
    assert result.metadata.indices["logs"].state == "open"


def test_update_setting_fetches_state_with_args():
    conn = FakeConn({"cluster_name": "c1"})
    result = update_setting(conn, {"local": True})
    assert conn.calls == [("GET", "/_cluster/state", {"local": True}, None)]
    assert result == ClusterStateResponse(cluster_name="c1")


def test_update_settings_rejects_unknown_type():
    conn = FakeConn()
    with pytest.raises(ValueError, match="settingType must be one of transient or persistent"):
        update_settings(conn, "forever", "key", 1)
    assert conn.calls == []


def test_update_settings_sends_body():
    conn = FakeConn({"transient": {"discovery.zen.minimum_master_nodes": 2}})
    result = update_settings(conn, "transient", "discovery.zen.minimum_master_nodes", 2)
    method, path, args, data = conn.calls[0]
    assert (method, path, args) == ("PUT", "/_cluster/state", None)
    assert data == {"transient": {"discovery.zen.minimum_master_nodes": 2}}
    assert result == ClusterSettingsResponse(
        transient={"discovery.zen.minimum_master_nodes": 2}, persistent={}
    )


def test_reroute_requires_commands():
    conn = FakeConn()
    with pytest.raises(ValueError, match="Must pass at least one command"):
        reroute(conn, False, [])
    assert conn.calls == []


def test_reroute_sends_commands_and_dry_run():
    conn = FakeConn(HEALTH)
    commands = [
        MoveCommand(index="i", shard="0", from_node="a", to_node="b"),
        CancelCommand(index="i", shard="1", node="a"),
        AllocateCommand(index="i", shard="2", node="b", allow_primary=True),
    ]
    result = reroute(conn, True, commands)
    method, path, args, data = conn.calls[0]
    assert (method, path, args) == ("POST", "/_cluster/reroute", {"dry_run": True})
    assert data["commands"][0] == {"index": "i", "shard": "0", "from_node": "a", "to_node": "b"}
    assert "allow_primary" not in data["commands"][1]
    assert data["commands"][2]["allow_primary"] is True
    assert result.status == "green"


def test_reroute_without_dry_run_has_no_args():
    conn = FakeConn(HEALTH)
    reroute(conn, False, [CancelCommand(index="i", shard="0", node="n")])
    assert conn.calls[0][2] is None


def test_nodes_shutdown_with_delay():
    conn = FakeConn()
    assert nodes_shutdown(conn, 5, "n1", "n2") is None
    assert conn.calls == [("POST", "/_cluster/nodes/n1,n2/_shutdown?delay=5", None, None)]


def test_nodes_shutdown_without_delay():
    conn = FakeConn()
    nodes_shutdown(conn, 0, "_all")
    assert conn.calls[0][1] == "/_cluster/nodes/_all/_shutdown"