"""
Failover retry scheduler for redundant key-lookup servers.

Resolves a pool of endpoint URIs to concrete network addresses and drives
a caller-supplied action against one address at a time:
- Exponential backoff per address (due-time ordered queue)
- Adaptive per-address timeouts after connect/timeout failures
- Global deadline and attempt ceiling per invocation
- "Confirmed not found" outcome when servers consistently answer 404

Architecture: asyncio scheduling queue + httpx HKP client + structlog
"""

__version__ = "0.1.0"
