"""OpenPGP key lookup over HKP, driven by FailoverRetry."""

from failover_retry.keyserver.client import (
    KeyServerClient,
    build_lookup_request,
    normalize_key_id,
)
from failover_retry.keyserver.exceptions import (
    InvalidKeyResponse,
    KeyServerError,
    KeyServerResponseError,
)

__all__ = [
    "KeyServerClient",
    "build_lookup_request",
    "normalize_key_id",
    "KeyServerError",
    "KeyServerResponseError",
    "InvalidKeyResponse",
]
