"""FastAPI endpoints for Persona Chat.

HTTP and streaming routes with async request handling.
Uses Server-Sent Events for reply streaming and session subscriptions.

Endpoints:
    - GET /health: Service health status
    - POST /chat/stream: Streamed in-character reply
    - GET/PUT/DELETE /sessions...: Session documents and subscription
    - GET/POST /personas...: Persona catalog and AI suggestions
"""

from persona_chat.api.app import app, create_app

__all__ = ["app", "create_app"]
