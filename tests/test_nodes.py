import json

import pytest

from elastigo.nodes import Node, NodeInfo, all_nodes_info, nodes_info


class FakeConn:
    def __init__(self, payload):
        self.body = json.dumps(payload).encode() if not isinstance(payload, bytes) else payload
        self.calls = []

    def do_command(self, method, path, args=None, data=None):
        self.calls.append((method, path, args, data))
        return self.body


NODE = {
    "name": "alpha",
    "transport_address": "inet[/127.0.0.1:9300]",
    "host": "localhost",
    "ip": "127.0.0.1",
    "version": "1.4.0",
    "build": "bc94bd8",
    "http_address": "inet[/127.0.0.1:9200]",
    "settings": {"path": {"logs": "/var/log/es", "home": "/opt/es"}, "name": "alpha"},
    "os": {
        "refresh_interval": 1000,
        "available_processors": 4,
        "cpu": {"vendor": "Intel", "model": "Core", "mhz": 2400, "total_cores": 4},
    },
    "process": {"refresh_interval": 1000, "id": 321, "max_file_descriptors": 1024, "mlockall": True},
    "jvm": {
        "pid": 321,
        "version": "1.7.0",
        "vm_name": "VM",
        "mem": {"heap_init_in_bytes": 1, "heap_max_in_bytes": 2},
        "gc_collectors": ["ParNew"],
    },
    "thread_pool": {
        "search": {"type": "fixed", "min": 12, "max": 12, "queue_size": "1k"},
        "bulk": {"type": "fixed", "queue_size": -1},
    },
    "network": {"refresh_interval": 5000, "primary_interface": {"address": "10.0.0.1", "name": "eth0"}},
    "transport": {"bound_address": "inet[/0:0:0:0:0:0:0:0:9300]", "publish_address": "inet[/10.0.0.1:9300]"},
    "http": {"bound_address": "inet[/0:0:0:0:0:0:0:0:9200]", "publish_address": "inet[/10.0.0.1:9200]"},
    "plugins": [],
}

PAYLOAD = {"cluster_name": "elasticsearch", "nodes": {"abc": NODE}}


def test_get_all():
    conn = FakeConn(PAYLOAD)
    info = all_nodes_info(conn)
    assert conn.calls == [("GET", "/_nodes/_all/_all", None, None)]
    assert info.cluster_name != ""
    assert len(info.nodes) == 1
    for node in info.nodes.values():
        assert node.settings is not None
        assert node.os is not None
        assert node.process is not None
        assert node.jvm is not None
        assert node.thread_pool is not None
        assert node.network is not None
        assert node.transport is not None
        assert node.http is not None
        assert node.plugins is not None


def test_nested_values_are_read():
    node = all_nodes_info(FakeConn(PAYLOAD)).nodes["abc"]
    assert node.name == "alpha"
    assert node.settings.path.logs == "/var/log/es"
    assert node.os.cpu.mhz == 2400
    assert node.process.mlockall is True
    assert node.jvm.mem.heap_max_in_bytes == 2
    assert node.jvm.gc_collectors == ["ParNew"]
    assert node.thread_pool.search.queue_size == "1k"
    assert node.thread_pool.bulk.queue_size == -1
    assert node.thread_pool.get is None
    assert node.network.primary_interface.name == "eth0"
    assert node.transport.publish_address == "inet[/10.0.0.1:9300]"


def test_nodes_info_path():
    conn = FakeConn(PAYLOAD)
    nodes_info(conn, ["jvm", "process"], "n1", "n2")
    assert conn.calls[0][1] == "/_nodes/n1,n2/jvm,process"


def test_missing_sections_stay_none():
    node = Node.from_dict({"name": "bare"})
    assert node.name == "bare"
    assert node.settings is None
    assert node.jvm is None
    assert node.plugins is None


def test_node_info_without_nodes():
    info = NodeInfo.from_dict({"cluster_name": "c"})
    assert info.cluster_name == "c"
    assert info.nodes is None


def test_bad_json_raises():
    with pytest.raises(ValueError):
        all_nodes_info(FakeConn(b"{broken"))