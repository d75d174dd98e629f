"""Unit tests for individual components in isolation.

Coverage:
    - models/: Pydantic validation and document projections
    - sessions/: cache, accumulator, reconciliation, feed and controller
    - agent/: configuration, prompts and suggestion parsing
    - clients/: HTTP adapters against httpx.MockTransport
    - main: launcher helpers (ports, API address, model key check)

Uses mocks for external services when needed. Leverages pytest-check for
multiple assertions per test.
"""
