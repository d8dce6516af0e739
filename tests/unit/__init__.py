"""
Unit tests for the failover retry scheduler.

Test individual components in isolation:
- Backoff recurrence and adaptive timeouts
- Scheduled tasks and the scheduling queue (mock clock, scripted resolver)
- AttemptContext retry predicates
- FailoverRetry outcome classification and exhaustion
- HKP key-server client (httpx MockTransport)
"""
