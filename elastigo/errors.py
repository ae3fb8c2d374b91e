"""Errors raised by the client."""

from __future__ import annotations

from datetime import datetime


class ESError(Exception):
    """An error reported by the server, with the time it was seen and the HTTP status."""

    def __init__(self, when: datetime, what: str, code: int) -> None:
        super().__init__(what)
        self.when = when
        self.what = what
        self.code = code

    def __str__(self) -> str:
        return f"{self.when}: {self.what} [{self.code}]"


class RecordNotFound(LookupError):
    """The server answered 404 with no body: the record does not exist."""

    def __init__(self, message: str = "record not found") -> None:
        super().__init__(message)