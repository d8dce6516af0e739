"""
Host name resolution for endpoint URIs.
"""

import asyncio
import socket
from typing import Protocol
from urllib.parse import urlsplit

import structlog

from failover_retry.retry.exceptions import ResolutionError

logger = structlog.get_logger(__name__)


class Resolver(Protocol):
    """Resolves a host name to every address it is known by."""

    async def resolve(self, host: str) -> list[str]:
        """
        Resolve ``host``.

        Raises:
            ResolutionError: If the host has no addresses
        """
        ...


class SystemResolver:
    """Resolver backed by the event loop's getaddrinfo."""

    async def resolve(self, host: str) -> list[str]:
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
        except (OSError, UnicodeError) as e:
            raise ResolutionError(host, str(e)) from e

        addresses: list[str] = []
        for _family, _type, _proto, _canonname, sockaddr in infos:
            address = sockaddr[0]
            if address not in addresses:
                addresses.append(address)

        if not addresses:
            raise ResolutionError(host, "no addresses returned")

        logger.debug("Resolved host", host=host, addresses=addresses)
        return addresses


def host_of(uri: str) -> str:
    """Return the host part of ``uri`` or raise ValueError."""
    host = urlsplit(uri).hostname
    if not host:
        raise ValueError(f"Endpoint URI has no host: {uri!r}")
    return host
