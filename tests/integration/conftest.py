"""Integration test configuration.

Integration tests use only the local network stack (loopback, system
resolver) and need no external services.
"""
