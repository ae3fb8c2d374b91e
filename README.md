# elastigo

A small Elasticsearch client built on the standard library alone. It covers
document indexing, retrieval, update and deletion, multi-get, search,
suggest, scroll, count, explain, validate, more-like-this, percolation,
delete-by-query, index aliases and text analysis, cluster health, state and
settings, node information, and parsing of the `_cat` endpoints.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Connecting

```python
from elastigo.connection import Connection

conn = Connection()
conn.set_from_url("http://localhost:9200")
```

`set_from_url` takes the protocol, host, port and any user and password from
the URL; an empty URL raises `ValueError`. A connection can spread its
requests over several hosts, handed out in turn, with
`conn.set_hosts(["es1:9200", "es2:9200"])`.

Every call goes through `Connection.do_command(method, path, args, data)`,
which returns the raw body of the answer. The body may be a string, bytes, a
readable stream or any JSON-serialisable value. When the server answers with
a status above 304 and an error object, `elastigo.errors.ESError` is raised,
carrying the time, the message and the HTTP status code. A 404 answer with no
body raises `elastigo.errors.RecordNotFound`.

A `request_tracer` callable, given to `Connection(...)`, is called with the
method, URL and body of each command before it is sent.

## Documents

```python
from elastigo import documents

documents.index_document(conn, "twitter", "tweet", "1", None,
                         {"user": "kimchy", "message": "Search is cool"})
response = documents.get(conn, "twitter", "tweet", "1", None)
print(response.exists)
print(documents.exists_bool(conn, "twitter", "tweet", "1"))
documents.update_with_partial_doc(conn, "twitter", "tweet", "1", None,
                                  {"message": "Still cool"}, True)
documents.delete(conn, "twitter", "tweet", "1", None)
```

`documents.get_index_url` builds the path and query string for indexing
with every option (parent, version, op type, routing, timestamp, ttl,
percolate, timeout, refresh); it raises `ValueError` for a blank index or
for an id without a type.

## Search

```python
from elastigo import search

result = search.search(conn, "twitter", "tweet", None,
                       {"query": {"term": {"user": "kimchy"}}})
print(result, len(result.hits))
for hit in result.hits.hits:
    print(hit.doc_id, hit.score, hit.source)
```

Also in `elastigo.search`: `search_uri`, `scroll` (its arguments must hold
`scroll`), `suggest` with `SuggestResults.result(name)`, `count`, `explain`,
`validate`, `more_like_this`, `register_percolate`, `percolate` and
`delete_by_query`.

## Indices

```python
from elastigo import indices

indices.add_alias(conn, "twitter", "tweets")
tokens = indices.analyze_indices(conn, "twitter", {"text": "Search is cool"}).tokens
```

## Cluster and nodes

```python
from elastigo import cluster, nodes

print(cluster.health(conn).status)
state = cluster.cluster_state(conn, cluster.ClusterStateFilter(filter_blocks=True))
cluster.update_settings(conn, "transient", "discovery.zen.minimum_master_nodes", 2)
print(nodes.all_nodes_info(conn).cluster_name)
```

`cluster.reroute` sends `MoveCommand`, `CancelCommand` and
`AllocateCommand` values, and `cluster.nodes_shutdown` shuts nodes down
after a delay.

## Cat APIs

```python
from elastigo import cat

for shard in cat.get_cat_shards(conn):
    print(shard)
for index in cat.get_cat_index_info(conn, "logs-*"):
    print(index.name, index.docs.count)
for node in cat.get_cat_node_info(conn, ["host", "ip", "name"]):
    print(node.host, node.name)
```

The line parsers `parse_cat_index_info`, `parse_cat_shard_info` and
`parse_cat_node_info` can be used on their own. In a node field list, put
`name` last: it takes the rest of the line.

## Demo command

`elastigo-demo --host localhost` indexes a sample tweet, searches for it,
reads, checks, counts and deletes it, reports the cluster health and sets a
transient cluster setting, logging each result.

## What is not included

There is no buffered bulk indexer: documents are sent one request at a time
through the functions above.