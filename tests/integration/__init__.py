"""Integration tests for components working together as a system.

Coverage:
    - API endpoints with real HTTP requests over ASGITransport
    - Session controller driving the HTTP clients against the API
    - Agent responses with live LLM calls (when configured)

The agent is replaced through FastAPI dependency overrides unless a test
is marked as needing an API key.
"""
