"""Connections to a search server and the raw command they send."""

from __future__ import annotations

import base64
import dataclasses
import itertools
import json
import logging
import platform
import threading
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping

from elastigo.errors import ESError, RecordNotFound
from elastigo.responses import BaseResponse

VERSION = "0.0.2"
DEFAULT_PROTOCOL = "http"
DEFAULT_DOMAIN = "localhost"
DEFAULT_PORT = "9200"

RequestTracer = Callable[[str, str, str], None]

logger = logging.getLogger(__name__)


def split_host_port(full_host: str, default_port: str) -> tuple[str, str]:
    """Split 'host:port', falling back to the default port when there is none."""
    parts = full_host.split(":")
    if len(parts) == 2:
        return parts[0], parts[1]
    return parts[0], default_port


def _format_number(value: float) -> str:
    text = repr(value)
    return text[:-2] if text.endswith(".0") else text


def _format_arg(key: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_number(value)
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return ",".join(value)
    raise TypeError(f"Could not format URL argument: {key}")


def encode_query(args: Mapping[str, Any] | None) -> str:
    """Encode URL arguments as a query string, keys sorted."""
    if not args:
        return ""
    pairs = sorted((key, _format_arg(key, value)) for key, value in args.items())
    return urllib.parse.urlencode(pairs)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _encode_body(data: Any) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    read = getattr(data, "read", None)
    if callable(read):
        content = read()
        return content.encode("utf-8") if isinstance(content, str) else bytes(content)
    return json.dumps(data, default=_json_default, separators=(",", ":")).encode("utf-8")


@dataclass
class Request:
    """A prepared HTTP request to one host of the cluster."""

    method: str
    url: str
    host: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    def send(self) -> tuple[int, bytes]:
        """Send the request and return the status code and body.

        A 404 answer without a body raises RecordNotFound.
        """
        request = urllib.request.Request(
            self.url, data=self.body, headers=self.headers, method=self.method
        )
        try:
            with urllib.request.urlopen(request) as response:
                status, payload = response.status, response.read()
        except urllib.error.HTTPError as exc:
            status = exc.code
            payload = exc.read() if exc.fp is not None else b""
            exc.close()
        if status == 404 and not payload.strip():
            raise RecordNotFound()
        return status, payload


class _HostPool:
    """Hands out hosts in turn."""

    def __init__(self, hosts: Iterable[str]) -> None:
        self._cycle = itertools.cycle(list(hosts))
        self._lock = threading.Lock()

    def get(self) -> str:
        with self._lock:
            return next(self._cycle)


class Connection:
    """Settings for reaching a cluster, and the commands sent through them."""

    def __init__(
        self,
        protocol: str = DEFAULT_PROTOCOL,
        domain: str = DEFAULT_DOMAIN,
        port: str = DEFAULT_PORT,
        username: str = "",
        password: str = "",
        hosts: Iterable[str] | None = None,
        request_tracer: RequestTracer | None = None,
    ) -> None:
        self.protocol = protocol
        self.domain = domain
        self.cluster_domains = [domain]
        self.port = port
        self.username = username
        self.password = password
        self.hosts: list[str] = list(hosts or [])
        self.request_tracer = request_tracer
        self._pool: _HostPool | None = None
        self._pool_lock = threading.Lock()

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def set_from_url(self, url: str) -> None:
        """Take protocol, host, port and credentials from a URL."""
        if not url:
            raise ValueError("Url is empty")
        parsed = urllib.parse.urlsplit(url)
        self.protocol = parsed.scheme
        host_part = parsed.netloc.rpartition("@")[2]
        self.domain, self.port = split_host_port(host_part, self.port)
        if "@" in parsed.netloc:
            self.username = parsed.username or ""
            if parsed.password is not None:
                self.password = parsed.password

    def set_port(self, port: str) -> None:
        self.port = port

    def set_hosts(self, hosts: Iterable[str]) -> None:
        """Replace the host list and start a fresh host pool."""
        self.hosts = list(hosts)
        with self._pool_lock:
            self._initialize_host_pool()

    def _initialize_host_pool(self) -> None:
        if not self.hosts:
            self.hosts.append(f"{self.domain}:{self.port}")
        self._pool = _HostPool(self.hosts)

    def close(self) -> None:
        """Drop the host pool; it is rebuilt on the next request."""
        with self._pool_lock:
            self._pool = None

    def _next_host(self) -> str:
        with self._pool_lock:
            if self._pool is None:
                self._initialize_host_pool()
            pool = self._pool
        return pool.get()

    def new_request(self, method: str, path: str, query: str = "") -> Request:
        """Build a request for the next host in the pool."""
        chosen = self._next_host()
        host, port = split_host_port(chosen, self.port)
        url = f"{self.protocol}://{host}:{port}{path}"
        if query:
            url = f"{url}?{query}"
        headers = {
            "Accept": "application/json",
            "User-Agent": (
                f"elasticSearch/{VERSION} "
                f"({platform.system().lower()}-{platform.machine().lower()})"
            ),
        }
        if self.username or self.password:
            credentials = f"{self.username}:{self.password}".encode("utf-8")
            headers["Authorization"] = "Basic " + base64.b64encode(credentials).decode("ascii")
        return Request(method=method, url=url, host=chosen, headers=headers)

    def do_command(
        self,
        method: str,
        path: str,
        args: Mapping[str, Any] | None = None,
        data: Any = None,
    ) -> bytes:
        """Send a command and return the raw body of the answer.

        Raises ESError when the server answers above 304 with an error object.
        """
        request = self.new_request(method, path, encode_query(args))
        if data is not None:
            request.body = _encode_body(data)
            request.headers.setdefault("Content-Type", "application/json")

        if self.request_tracer is not None:
            traced = request.body.decode("utf-8", errors="replace") if request.body else ""
            self.request_tracer(request.method, request.url, traced)

        status, body = request.send()
        if status > 304:
            response = json.loads(body)
            if isinstance(response, dict) and "error" in response:
                raise ESError(
                    datetime.now(),
                    f"Error [{response['error']}] Status [{response.get('status')}]",
                    status,
                )
        return body

    def exists(
        self,
        index: str,
        doc_type: str,
        doc_id: str,
        args: Mapping[str, Any] | None = None,
    ) -> BaseResponse:
        """Check for a document with a HEAD request."""
        query = encode_query(args)
        path = f"/{index}/{doc_type}/{doc_id}" if doc_type else f"/{index}/{doc_id}"
        status, body = self.new_request("HEAD", path, query).send()
        try:
            response = json.loads(body)
        except ValueError as exc:
            if status <= 304:
                logger.info("could not read answer: %s", exc)
            return BaseResponse()
        if status > 304:
            if isinstance(response, dict) and "error" in response:
                logger.warning("Error: %s (%s)", response["error"], response.get("status"))
            return BaseResponse()
        return BaseResponse.from_dict(response if isinstance(response, dict) else None)