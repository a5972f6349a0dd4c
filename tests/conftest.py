import asyncio
import json
from contextlib import suppress

import pytest

STATUS = {
    "current_temperature": 21.5,
    "target_temperature": 20.0,
    "current_state": "Heat",
    "target_state": "Heat",
    "current_humidity": 45,
}


def notify(status=STATUS) -> bytes:
    return json.dumps({"type": "NotifyStatus", "status": status}).encode()


@pytest.fixture
async def tcp_server():
    """Start loopback servers with a given connection handler; returns the port."""
    servers = []
    writers = []

    async def _start(handler):
        async def _tracked(reader, writer):
            writers.append(writer)
            try:
                await handler(reader, writer)
            finally:
                writer.close()

        server = await asyncio.start_server(_tracked, "127.0.0.1", 0)
        servers.append(server)
        return server.sockets[0].getsockname()[1]

    yield _start

    for writer in writers:
        writer.close()
    for server in servers:
        server.close()
        with suppress(asyncio.TimeoutError):
            await asyncio.wait_for(server.wait_closed(), 1)


@pytest.fixture
async def unused_port():
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    return port


async def wait_until(predicate, timeout=2.0):
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.01)
