"""Shared builders for scripted API responses."""

import asyncio
import json
from typing import Any, Dict, List, Optional, Union
from urllib.parse import parse_qs, urlsplit

from robotevents.domain.interfaces.transport import RawResponse, Transport

BASE = "https://www.robotevents.com/api/v2"

Scripted = Union[RawResponse, Exception]


def envelope(page: int, last_page: int, items: List[Any], per_page: int = 50, total: Optional[int] = None,
             path: str = "/teams") -> Dict[str, Any]:
    """Builds a paginated body the way the API shapes it."""
    if total is None:
        total = (last_page - 1) * per_page + len(items) if last_page > 1 else len(items)
    url = f"{BASE}{path}"
    return {
        "meta": {
            "current_page": page,
            "first_page_url": f"{url}?page=1",
            "from": (page - 1) * per_page + 1 if items else None,
            "to": (page - 1) * per_page + len(items) if items else None,
            "last_page": last_page,
            "last_page_url": f"{url}?page={last_page}",
            "prev_page_url": f"{url}?page={page - 1}" if page > 1 else None,
            "next_page_url": f"{url}?page={page + 1}" if page < last_page else None,
            "path": url,
            "per_page": per_page,
            "total": total,
        },
        "data": items,
    }


def ok(body: Any, headers: Optional[Dict[str, str]] = None) -> RawResponse:
    raw = body if isinstance(body, bytes) else json.dumps(body).encode()
    return RawResponse(status_code=200, headers=headers or {}, body=raw)


def throttled(retry_after: Optional[str] = None) -> RawResponse:
    headers = {"Retry-After": retry_after} if retry_after is not None else {}
    return RawResponse(status_code=429, headers=headers, body=b'{"message": "Too Many Requests"}')


def status(code: int) -> RawResponse:
    return RawResponse(status_code=code, body=b'{"message": "error"}')


def items_for(page: int, count: int) -> List[Dict[str, Any]]:
    return [{"id": page * 1000 + i, "page": page, "position": i} for i in range(count)]


def page_number(path: str) -> int:
    values = parse_qs(urlsplit(path).query).get("page")
    return int(values[0]) if values else 1


class ScriptedTransport(Transport):
    """In-memory Transport answering per page number from a script.

    Each page has a queue of responses (or exceptions to raise); the last
    entry is repeated once the queue is down to one. ``delays`` holds a real
    sleep per page so tests can force completion order.
    """

    def __init__(self, script: Dict[int, List[Scripted]], delays: Optional[Dict[int, float]] = None):
        self.script = {number: list(responses) for number, responses in script.items()}
        self.delays = delays or {}
        self.calls: List[str] = []
        self.completed: List[int] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    def calls_for(self, number: int) -> int:
        return sum(1 for path in self.calls if page_number(path) == number)

    async def get(self, path: str) -> RawResponse:
        self.calls.append(path)
        number = page_number(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(number, 0))
            queue = self.script[number]
            response = queue.pop(0) if len(queue) > 1 else queue[0]
        finally:
            self.in_flight -= 1
        if isinstance(response, Exception):
            raise response
        self.completed.append(number)
        return response

    async def aclose(self) -> None:
        self.closed = True


def paged_script(page_sizes: List[int], per_page: int = 50, path: str = "/teams") -> Dict[int, List[Scripted]]:
    """One successful response per page with the given item counts."""
    last_page = len(page_sizes)
    total = sum(page_sizes)
    return {
        number: [ok(envelope(number, last_page, items_for(number, size), per_page=per_page, total=total, path=path))]
        for number, size in enumerate(page_sizes, start=1)
    }


class RecordingSleep:
    """Stands in for asyncio.sleep and records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)

