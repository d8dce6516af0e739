"""
Integration tests for the failover retry scheduler.

Tests real components on the local network stack:
- System resolver (localhost, invalid host names)
- FailoverRetry against loopback TCP servers
"""
