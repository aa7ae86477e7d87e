from collections.abc import Awaitable, Callable, Mapping
from typing import NamedTuple

from aiohttp import web

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


class Route(NamedTuple):
    method: str
    handler: Handler


HandlerTable = Mapping[str, Route]


class RequestResult(NamedTuple):
    request_number: int
    bytes_transferred: int
    time_taken: float
    verified: bool
    error: str | None = None


class SummaryStats(NamedTuple):
    total_bytes: int
    total_time: float
    average_speed: float
    average_speed_formatted: str


class ScenarioResult(NamedTuple):
    mode: str
    length: int
    num: int
    parallel: int
    ok: int
    failures: list[str]
    total_bytes: int
    total_time: float
    average_speed_formatted: str
