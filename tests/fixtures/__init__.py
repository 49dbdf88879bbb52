"""
Pytest fixtures for the HopHTTP test suite.

Fixtures are organized by subsystem:
- http_mocking: MockTransport-backed clients and response builders
"""
