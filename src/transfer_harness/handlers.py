"""
Request handlers exercised by transfer scenarios.

build_handlers() returns an immutable path -> Route table; make_app() turns a
table into an aiohttp application. Handler failures are raised, never
swallowed: the error middleware maps them to HTTP errors and records them so
the driving test can fail on them.
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Protocol

from aiohttp import web

from transfer_harness.constants import DEFAULT_CHUNK_SIZE, HELLO_TEXT, MAX_BODY_SIZE
from transfer_harness.errors import SetupError, VerificationError
from transfer_harness.pages import download_page, upload_page
from transfer_harness.parsing import parse_query_int
from transfer_harness.prng import SequenceVerifier, iter_chunks
from transfer_harness.structs import HandlerTable, Route
from transfer_harness.tracker import UploadTracker

logger = logging.getLogger(__name__)

FAILURES_KEY = web.AppKey("failures", list)


class DataSource(Protocol):
    def get_data(self) -> bytes: ...


def build_handlers(tracker: UploadTracker, data: DataSource) -> HandlerTable:
    """
    Build the handler table.

    Args:
        tracker: Counter incremented once per verified upload
        data: Source of the fixed payload served by /data

    Returns:
        Read-only mapping of path to Route
    """

    async def hello(request: web.Request) -> web.Response:
        return web.Response(text=HELLO_TEXT)

    async def fixed_data(request: web.Request) -> web.Response:
        payload = data.get_data()
        if not payload:
            raise SetupError("No data set for /data")
        return web.Response(body=payload, content_type="application/octet-stream")

    async def prdata(request: web.Request) -> web.StreamResponse:
        length = parse_query_int(request.query, "len")

        response = web.StreamResponse(
            headers={"Content-Type": "application/octet-stream"}
        )
        response.content_length = length
        await response.prepare(request)

        for chunk in iter_chunks(length, DEFAULT_CHUNK_SIZE):
            await response.write(chunk)
            # Let other requests run between chunks
            await asyncio.sleep(0)

        await response.write_eof()
        return response

    async def echo(request: web.Request) -> web.Response:
        body = await request.read()
        return web.Response(body=body, content_type="application/octet-stream")

    async def upload_handler(request: web.Request) -> web.Response:
        length = parse_query_int(request.query, "len")

        verifier = SequenceVerifier(length)
        async for chunk in request.content.iter_chunked(DEFAULT_CHUNK_SIZE):
            verifier.feed(chunk)
            await asyncio.sleep(0)
        verifier.finish()

        tracker.increment()
        logger.debug("Verified upload of %d bytes", length)
        return web.Response()

    async def upload_test(request: web.Request) -> web.Response:
        length = parse_query_int(request.query, "len")
        num = parse_query_int(request.query, "num")
        return web.Response(text=upload_page(length, num), content_type="text/html")

    async def download_test(request: web.Request) -> web.Response:
        length = parse_query_int(request.query, "len")
        num = parse_query_int(request.query, "num")
        return web.Response(
            text=download_page(length, num), content_type="text/html"
        )

    return MappingProxyType(
        {
            "/hello": Route("GET", hello),
            "/data": Route("GET", fixed_data),
            "/prdata": Route("GET", prdata),
            "/echo": Route("POST", echo),
            "/uploadhandler": Route("POST", upload_handler),
            "/uploadtest": Route("GET", upload_test),
            "/downloadtest": Route("GET", download_test),
        }
    )


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Map harness errors to HTTP errors and record them on the application."""
    try:
        return await handler(request)
    except SetupError as exc:
        request.app[FAILURES_KEY].append(exc)
        logger.error("Setup error on %s: %s", request.path_qs, exc)
        raise web.HTTPBadRequest(text=str(exc))
    except VerificationError as exc:
        request.app[FAILURES_KEY].append(exc)
        logger.error("Verification failed on %s: %s", request.path_qs, exc)
        raise web.HTTPInternalServerError(text=str(exc))


def make_app(table: HandlerTable, failures: list) -> web.Application:
    """
    Create an aiohttp application serving the handler table.

    Args:
        table: Handler table from build_handlers()
        failures: List receiving every SetupError/VerificationError raised by a handler

    Returns:
        Configured aiohttp application
    """
    app = web.Application(
        middlewares=[error_middleware], client_max_size=MAX_BODY_SIZE
    )
    app[FAILURES_KEY] = failures
    for path, route in table.items():
        app.router.add_route(route.method, path, route.handler)
    return app
