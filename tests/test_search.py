import dataclasses
import json

import pytest

from elastigo.search import (
    MLT,
    CountResponse,
    DeleteByQueryResponse,
    Hit,
    Hits,
    MoreLikeThisQuery,
    PercolatorResult,
    SearchResult,
    SuggestResults,
    Validation,
    count,
    delete_by_query,
    explain,
    more_like_this,
    parse_float_nullable,
    percolate,
    register_percolate,
    scroll,
    search,
    search_uri,
    suggest,
    validate,
)


class FakeConn:
    def __init__(self, payload):
        self.body = json.dumps(payload).encode("utf-8") if not isinstance(payload, bytes) else payload
        self.calls = []

    def do_command(self, method, path, args, data):
        self.calls.append((method, path, args, data))
        return self.body


SEARCH_BODY = {
    "took": 5,
    "timed_out": False,
    "_shards": {"total": 5, "successful": 5, "failed": 0},
    "hits": {
        "total": 2,
        "hits": [
            {"_index": "github", "_type": "event", "_id": "1", "_score": None,
             "_source": {"actor": "alice"}},
            {"_index": "github", "_type": "event", "_id": "2", "_score": 1.5,
             "_source": {"actor": "adam"}, "highlight": {"actor": ["<em>adam</em>"]},
             "sort": [3]},
        ],
    },
    "_scroll_id": "abc",
}


def test_search_with_wildcard_query():
    conn = FakeConn(SEARCH_BODY)
    qry = {"query": {"wildcard": {"actor": "a*"}}}
    out = search(conn, "github", "", None, qry)
    assert conn.calls == [("POST", "/github/_search", None, qry)]
    assert out.raw_json == conn.body
    encoded = json.dumps([dataclasses.asdict(hit) for hit in out.hits.hits])
    assert json.loads(encoded)[0]["source"] == {"actor": "alice"}
    assert out.hits.hits[0].score == 0.0
    assert out.hits.hits[1].score == 1.5
    assert out.hits.hits[1].highlight == {"actor": ["<em>adam</em>"]}
    assert out.hits.hits[1].sort == [3]
    assert out.scroll_id == "abc"
    assert out.shard_status.successful == 5


@pytest.mark.parametrize(
    "doc_type, path",
    [("event", "/github/event/_search"), ("*", "/github/_search"), ("", "/github/_search")],
)
def test_search_paths(doc_type, path):
    conn = FakeConn(SEARCH_BODY)
    search(conn, "github", doc_type, {"from": 10}, "{}")
    assert conn.calls[0][:2] == ("POST", path)


def test_search_uri_uses_get_without_body():
    conn = FakeConn(SEARCH_BODY)
    out = search_uri(conn, "github", "", {"q": "user:kimchy"})
    assert conn.calls == [("GET", "/github/_search", {"q": "user:kimchy"}, None)]
    assert len(out.hits) == 2
    assert out.raw_json == conn.body


def test_search_result_str():
    result = SearchResult.from_dict(SEARCH_BODY)
    assert str(result) == "<Results took=5 Timeout=false hitct=2 />"


def test_hits_len():
    hits = Hits(total=10, hits=[Hit(doc_id="a"), Hit(doc_id="b"), Hit(doc_id="c")])
    assert len(hits) == 3


def test_scroll_requires_scroll_argument():
    conn = FakeConn(SEARCH_BODY)
    with pytest.raises(ValueError, match="Cannot call scroll"):
        scroll(conn, {"size": 10}, "abc")
    with pytest.raises(ValueError):
        scroll(conn, None, "abc")
    assert conn.calls == []


def test_scroll_sends_scroll_id():
    conn = FakeConn(SEARCH_BODY)
    out = scroll(conn, {"scroll": "1m"}, "abc")
    assert conn.calls == [("POST", "/_search/scroll", {"scroll": "1m"}, "abc")]
    assert out.raw_json == b""
    assert out.took == 5


SUGGEST_BODY = {
    "_shards": {"total": 1, "successful": 1, "failed": 0},
    "completion_completion": [
        {"text": "foo", "offset": 0, "length": 3,
         "options": [{"text": "foobar", "score": 1.0}]}
    ],
    "empty": None,
}


def test_suggest_completion():
    conn = FakeConn(SUGGEST_BODY)
    query = {"completion_completion": {"text": "foo",
                                       "completion": {"size": 10, "field": "completion"}}}
    res = suggest(conn, "github", None, query)
    assert conn.calls[0][:2] == ("POST", "/github/_suggest")
    opts = res.result("completion_completion")
    assert len(opts[0].options) > 0
    assert opts[0].options[0].text == "foobar"
    assert opts[0].length == 3
    assert res.result("empty") == []


def test_suggest_unknown_name():
    res = SuggestResults(body={"a": []})
    with pytest.raises(KeyError):
        res.result("missing")


def test_suggest_without_shards():
    conn = FakeConn({"foo": []})
    with pytest.raises(ValueError, match="Expect response to contain _shards field"):
        suggest(conn, "github", None, {})


def test_suggest_with_failures():
    conn = FakeConn({"_shards": {"total": 1, "successful": 0, "failed": 1,
                                 "failures": [{"index": "github", "shard": 1, "reason": "boom"}]}})
    with pytest.raises(ValueError) as info:
        suggest(conn, "github", None, {})
    assert "Got the following errors:\nFailed on shard 1 on index github:\nboom" == str(info.value)


def test_count():
    conn = FakeConn({"count": 7, "_shards": {"total": "3", "successful": 3, "failed": 0}})
    res = count(conn, "twitter", "tweet", None, None)
    assert conn.calls == [("GET", "/twitter/tweet/_count", None, None)]
    assert res == CountResponse.from_dict({"count": 7, "_shards": {"total": 3, "successful": 3}})
    assert res.count == 7 and res.shard.total == 3


@pytest.mark.parametrize(
    "doc_type, path", [("tweet", "/twitter/tweet/_explain"), ("", "/twitter/_explain")]
)
def test_explain(doc_type, path):
    conn = FakeConn({"ok": True, "matches": [{"_index": "twitter", "_id": "1"}],
                     "explanation": {"value": 1.0, "description": "sum"}})
    res = explain(conn, "twitter", doc_type, "1", None, "{}")
    assert conn.calls == [("GET", path, None, "{}")]
    assert res.ok is True
    assert res.matches[0].doc_id == "1"
    assert res.explanation.description == "sum"


@pytest.mark.parametrize(
    "doc_type, path", [("tweet", "/twitter/tweet/_validate/"), ("", "/twitter/_validate/")]
)
def test_validate(doc_type, path):
    conn = FakeConn({"ok": True})
    res = validate(conn, "twitter", doc_type, {"q": "user:kimchy"})
    assert conn.calls == [("GET", path, {"q": "user:kimchy"}, None)]
    assert res.ok is True


def test_validation_from_dict():
    v = Validation.from_dict({"valid": False, "_shards": {"total": 1},
                              "explanations": [{"index": "i", "valid": False, "error": "bad"}]})
    assert v.valid is False
    assert v.shards.total == 1
    assert v.explainations[0].error == "bad"


def test_more_like_this():
    conn = FakeConn({"ok": True, "_id": "1"})
    query = MoreLikeThisQuery(MLT(fields=["message"], like_text="bonsai", min_term_frequency=1))
    res = more_like_this(conn, "twitter", "tweet", "1", None, query)
    assert conn.calls[0][:2] == ("GET", "/twitter/tweet/1/_mlt")
    assert res.doc_id == "1"
    body = query.to_dict()
    assert body["more_like_this"]["fields"] == ["message"]
    assert body["more_like_this"]["like_text"] == "bonsai"
    assert body["more_like_this"]["min_term_freq"] == 1
    assert body["more_like_this"]["stop_words"] is None


PERC_INDEX = "test-perc-index"


def test_register_percolate():
    conn = FakeConn({"ok": True, "_id": "PERCID", "created": True})
    data = '{"query": {"match": {"message": "bonsai tree"}}}'
    res = register_percolate(conn, PERC_INDEX, "PERCID", data)
    assert conn.calls == [("PUT", f"/{PERC_INDEX}/.percolator/PERCID", None, data)]
    assert res.created is True


def test_percolate_matching_document():
    conn = FakeConn({"took": 1, "_shards": {"total": 1, "successful": 1, "failed": 0},
                     "total": 1, "matches": [{"_index": PERC_INDEX, "_id": "PERCID"}]})
    doc = '{"doc": { "message": "A new bonsai tree in the office" }}'
    result = percolate(conn, PERC_INDEX, "percType", "", None, doc)
    assert conn.calls == [("GET", f"/{PERC_INDEX}/percType/_percolate", None, doc)]
    assert len(result.matches) == 1
    assert result.matches[0].doc_id == "PERCID"
    assert result.matches[0].index == PERC_INDEX
    assert result.took == 1


def test_percolate_non_matching_document():
    conn = FakeConn({"took": 1, "total": 0, "matches": []})
    doc = '{"doc": { "message": "Barren wasteland with no matches" }}'
    result = percolate(conn, PERC_INDEX, "percType", "", None, doc)
    assert len(result.matches) == 0
    assert isinstance(result, PercolatorResult) and result.hits.total == 0


@pytest.mark.parametrize(
    "indices, types, path",
    [
        (["a", "b"], ["t1", "t2"], "/a,b/t1,t2/_query"),
        (["a"], [], "/a/_query"),
        ([], ["t"], ""),
    ],
)
def test_delete_by_query(indices, types, path):
    conn = FakeConn({"ok": True})
    res = delete_by_query(conn, indices, types, {"q": "user:kimchy"}, None)
    assert conn.calls == [("DELETE", path, {"q": "user:kimchy"}, None)]
    assert res.ok is True


def test_delete_by_query_response():
    res = DeleteByQueryResponse.from_dict(
        {"ok": True, "_indices": {"twitter": {"_shards": {"total": 5, "successful": 4, "failed": 1}}}}
    )
    assert res.status is True
    assert res.indices["twitter"].shards.failed == 1


def test_parse_float_nullable():
    assert parse_float_nullable(None) == 0.0
    assert parse_float_nullable(1.5) == 1.5
    assert parse_float_nullable(2) == 2.0
    assert abs(parse_float_nullable(0.1) - 0.1) < 1e-7