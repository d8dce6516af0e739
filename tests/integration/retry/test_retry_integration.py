"""
Integration tests for FailoverRetry against the real network stack.

Uses the system resolver for "localhost" and a TCP server bound to
127.0.0.1 only, so an IPv6 answer for localhost exercises the
connect-failure path before the IPv4 address succeeds.
"""

import asyncio

import pytest
import pytest_asyncio

from failover_retry.retry.backoff import BackoffPolicy
from failover_retry.retry.engine import FailoverRetry
from failover_retry.retry.exceptions import ResolutionError, RetryBudgetExhausted
from failover_retry.retry.resolver import SystemResolver


@pytest_asyncio.fixture
async def pong_server():
    """TCP server on 127.0.0.1 answering every connection with b"pong"."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writer.write(b"pong\n")
        await writer.drain()
        writer.close()
        await writer.wait_closed()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield port
    finally:
        server.close()
        await server.wait_closed()


async def read_line(ctx, port: int) -> str:
    reader, writer = await asyncio.wait_for(
        asyncio.open_connection(ctx.address, port), timeout=ctx.timeout
    )
    try:
        line = await asyncio.wait_for(reader.readline(), timeout=ctx.timeout)
    finally:
        writer.close()
    return line.decode().strip()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_system_resolver_resolves_localhost():
    """Test localhost resolves to a loopback address."""
    addresses = await SystemResolver().resolve("localhost")

    assert addresses
    assert set(addresses) & {"127.0.0.1", "::1"}
    assert len(addresses) == len(set(addresses))


@pytest.mark.integration
@pytest.mark.asyncio
async def test_system_resolver_rejects_invalid_host():
    """Test a syntactically invalid host raises ResolutionError."""
    with pytest.raises(ResolutionError) as exc_info:
        await SystemResolver().resolve("bad..host")

    assert exc_info.value.host == "bad..host"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_invoke_reaches_loopback_server(pong_server):
    """Test a real connection succeeds through the resolved localhost addresses."""
    retry = FailoverRetry(
        endpoints=[f"tcp://localhost:{pong_server}"],
        key_resolution_timeout=10.0,
        backoff_policy=BackoffPolicy(initial_delay=0.01, maximum_delay=0.1),
        retry_count=10,
    )

    result = await retry.invoke("Ping loopback", lambda ctx: read_line(ctx, pong_server))

    assert result == "pong"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_invalid_endpoint_does_not_block_valid_one(pong_server):
    """Test an unresolvable endpoint is backed off while the other one answers."""
    retry = FailoverRetry(
        endpoints=[f"tcp://bad..host:{pong_server}", f"tcp://localhost:{pong_server}"],
        key_resolution_timeout=10.0,
        backoff_policy=BackoffPolicy(initial_delay=0.01, maximum_delay=0.1),
        retry_count=10,
        shuffle=lambda items: None,
    )

    result = await retry.invoke("Ping loopback", lambda ctx: read_line(ctx, pong_server))

    assert result == "pong"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_closed_port_exhausts_budget():
    """Test refused connections end with RetryBudgetExhausted."""
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()

    retry = FailoverRetry(
        endpoints=[f"tcp://127.0.0.1:{port}"],
        key_resolution_timeout=2.0,
        backoff_policy=BackoffPolicy(initial_delay=0.01, maximum_delay=0.05),
        retry_count=3,
    )

    with pytest.raises(RetryBudgetExhausted) as exc_info:
        await retry.invoke("Ping closed port", lambda ctx: read_line(ctx, port))

    assert exc_info.value.attempts == 3
