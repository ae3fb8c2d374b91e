"""A small command that indexes, searches and deletes a sample tweet."""

from __future__ import annotations

import argparse
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Sequence

from elastigo.cluster import health, update_settings
from elastigo.connection import Connection
from elastigo.documents import delete, get, index_document
from elastigo.search import count, search

log = logging.getLogger(__name__)

_RFC3339 = re.compile(
    r"(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(?P<frac>\d+))?(?P<zone>Z|[+-]\d{2}:\d{2})"
)


def _rfc3339(value: datetime) -> str:
    moment = value if value.tzinfo else value.astimezone()
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    fraction = f"{moment.microsecond:06d}".rstrip("0")
    if fraction:
        text += "." + fraction
    offset = moment.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_rfc3339(text: str) -> datetime | None:
    found = _RFC3339.fullmatch(text or "")
    if not found:
        return None
    zone = found["zone"]
    normalized = found["base"]
    if found["frac"]:
        normalized += "." + found["frac"][:6].ljust(6, "0")
    normalized += "+00:00" if zone == "Z" else zone
    return datetime.fromisoformat(normalized)


@dataclass
class Tweet:
    """A sample document."""

    user: str = ""
    post_date: datetime = field(default_factory=lambda: datetime.now().astimezone())
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"user": self.user, "postDate": _rfc3339(self.post_date), "message": self.message}

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


def new_tweet(user: str, message: str) -> Tweet:
    """A tweet posted now."""
    return Tweet(user=user, post_date=datetime.now().astimezone(), message=message)


def _tweet_from_source(source: Any) -> Tweet:
    data = source if isinstance(source, dict) else {}
    posted = _parse_rfc3339(str(data.get("postDate") or ""))
    return Tweet(
        user=str(data.get("user") or ""),
        post_date=posted or datetime.fromtimestamp(0, timezone.utc),
        message=str(data.get("message") or ""),
    )


def _attempt(label: str, action: Callable[..., Any], *args: Any) -> Any:
    try:
        return action(*args)
    except Exception as exc:  # noqa: BLE001 - each step is reported and skipped
        log.warning("%s failed: %s", label, exc)
        return None


def main(argv: Sequence[str] | None = None) -> int:
    """Run the sample session against the given host."""
    parser = argparse.ArgumentParser(description="Index, search and delete a sample tweet.")
    parser.add_argument(
        "-host", "--host", dest="host", default="localhost",
        help="Elasticsearch Server Host Address",
    )
    options = parser.parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s %(filename)s:%(lineno)d: %(message)s",
        datefmt="%H:%M:%S",
        level=logging.INFO,
    )

    conn = Connection(domain=options.host)
    tweet = new_tweet("kimchy", "Search is cool")
    response = _attempt("index", index_document, conn, "twitter", "tweet", "1", None, tweet.to_dict())
    log.info("Index OK: %s", bool(response and response.ok))

    query = '{"query" : {"term" : { "user" : "kimchy" }}}'
    try:
        result = search(conn, "twitter", "tweet", None, query)
    except Exception as exc:  # noqa: BLE001
        log.error("error during search:%s", exc)
        return 1
    if not result.hits.hits:
        log.error("search found no hits")
        return 1
    log.info("Search Found: %s", _tweet_from_source(result.hits.hits[0].source))

    response = _attempt("get", get, conn, "twitter", "tweet", "1", None)
    log.info("Get: %s", bool(response and response.exists))
    exists = _attempt("exists", conn.exists, "twitter", "tweet", "1", None)
    log.info("Exists: %s", exists)

    count_response = _attempt("count", count, conn, "twitter", "tweet", None, None)
    log.info("Count: %s", count_response.count if count_response else 0)

    response = _attempt(
        "delete", delete, conn, "twitter", "tweet", "1", {"version": -1, "routing": ""}
    )
    log.info("Delete OK: %s", bool(response and response.ok))
    response = _attempt("get", get, conn, "twitter", "tweet", "1", None)
    log.info("Get: %s", bool(response and response.exists))

    health_response = _attempt("health", health, conn)
    log.info("Health: %s", health_response.status if health_response else "")

    _attempt(
        "update settings", update_settings, conn,
        "transient", "discovery.zen.minimum_master_nodes", 2,
    )
    return 0