"""
HKP key-server client.

Fetches ASCII-armored OpenPGP public keys from a pool of key servers
through FailoverRetry. Each attempt connects to one resolved address of
one server:

GET /pks/lookup?op=get&options=mr&search=0x<KEY ID>

Status handling:
- 200 with an armored key: success
- 404: retry on another address, counted as "not found"
- 429, 5xx: retry
- other 4xx: raised to the caller, not retried
"""

import re
from http import HTTPStatus

import httpx
import structlog

from failover_retry.keyserver.exceptions import (
    InvalidKeyResponse,
    KeyServerResponseError,
)
from failover_retry.retry.context import AttemptContext, RetrySignal
from failover_retry.retry.engine import FailoverRetry

logger = structlog.get_logger(__name__)

ARMOR_HEADER = "-----BEGIN PGP PUBLIC KEY BLOCK-----"

HKP_DEFAULT_PORT = 11371

# hkp(s) URIs are served over plain HTTP(S)
SCHEME_ALIASES = {"hkp": "http", "hkps": "https"}

_KEY_ID_RE = re.compile(r"^(?:[0-9A-F]{8}|[0-9A-F]{16}|[0-9A-F]{40})$")


def normalize_key_id(key_id: str) -> str:
    """
    Normalize a key id or fingerprint to upper-case hex without ``0x``.

    Accepts short (8), long (16) ids and v4 fingerprints (40 hex digits);
    spaces inside fingerprints are ignored.

    Raises:
        ValueError: If ``key_id`` is not one of those forms
    """
    normalized = key_id.strip().replace(" ", "").upper()
    if normalized.startswith("0X"):
        normalized = normalized[2:]
    if not _KEY_ID_RE.match(normalized):
        raise ValueError(f"Invalid OpenPGP key id: {key_id!r}")
    return normalized


def build_lookup_request(
    uri: str, address: str, key_id: str
) -> tuple[httpx.URL, dict[str, str], dict[str, str]]:
    """
    Build the lookup URL, headers and request extensions for one address.

    The URL targets ``address`` directly; the Host header and TLS SNI keep
    naming the endpoint host so virtual hosting and certificate checks
    still work.
    """
    endpoint = httpx.URL(uri)
    scheme = SCHEME_ALIASES.get(endpoint.scheme, endpoint.scheme)
    port = endpoint.port
    if port is None and endpoint.scheme == "hkp":
        port = HKP_DEFAULT_PORT
    host = f"[{address}]" if ":" in address else address

    url = httpx.URL(
        scheme=scheme,
        host=host,
        port=port,
        path=endpoint.path.rstrip("/") + "/pks/lookup",
        params={"op": "get", "options": "mr", "search": f"0x{key_id}"},
    )
    headers = {"Host": endpoint.netloc.decode("ascii")}
    extensions = {"sni_hostname": endpoint.host} if scheme == "https" else {}
    return url, headers, extensions


def _retry_decision(error: Exception) -> bool | None:
    if isinstance(error, KeyServerResponseError):
        return False
    if isinstance(error, InvalidKeyResponse):
        return True
    return None


class KeyServerClient:
    """
    Looks up OpenPGP keys across redundant key servers.

    Attributes:
        retry: Scheduler that owns the server pool and its retry state
    """

    def __init__(self, retry: FailoverRetry, http_client: httpx.AsyncClient | None = None):
        """
        Initialize key-server client.

        Args:
            retry: Scheduler driving lookups across the server pool
            http_client: Shared HTTP client; when omitted one is created on
                first use and closed by aclose()
        """
        self.retry = retry
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(follow_redirects=False)
            self._owns_client = True
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def fetch_key(self, key_id: str) -> str | None:
        """
        Fetch the armored public key for ``key_id``.

        Returns:
            The armored key block, or None when the servers report the key
            as not found

        Raises:
            ValueError: If ``key_id`` is malformed
            KeyServerResponseError: A server rejected the request
            RetryBudgetExhausted: No server could be reached in time
        """
        normalized = normalize_key_id(key_id)
        client = await self._get_client()

        async def lookup(ctx: AttemptContext) -> str | RetrySignal:
            ctx.retry_if(_retry_decision)
            url, headers, extensions = build_lookup_request(ctx.uri, ctx.address, normalized)

            start_time = self.retry.clock.monotonic()
            response = await client.get(
                url,
                headers=headers,
                extensions=extensions,
                timeout=httpx.Timeout(ctx.timeout),
            )
            status = response.status_code
            details = {"status": status, "uri": ctx.uri, "address": ctx.address}

            if status == HTTPStatus.NOT_FOUND:
                return ctx.retry(f"Key 0x{normalized} not found", status)
            if status == HTTPStatus.TOO_MANY_REQUESTS or status >= 500:
                return ctx.retry(f"Key server answered HTTP {status}", status)
            if status != HTTPStatus.OK:
                raise KeyServerResponseError(
                    status, f"Key server rejected lookup: HTTP {status}", details
                )

            body = response.text
            if ARMOR_HEADER not in body:
                raise InvalidKeyResponse("Response holds no armored public key", details)

            ctx.latency = max(self.retry.clock.monotonic() - start_time, 0.0)
            logger.info(
                "Key retrieved",
                key_id=normalized,
                uri=ctx.uri,
                address=ctx.address,
                latency_ms=int(ctx.latency * 1000),
            )
            return body

        return await self.retry.invoke(f"Fetch PGP key 0x{normalized}", lookup)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "KeyServerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
