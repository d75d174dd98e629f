"""Persona Chat - conversations with AI-played characters.

Combines FastAPI for HTTP streaming, Agno for agent orchestration,
NiceGUI for visualization, and Pydantic for data validation.

Components:
    - api: chat streaming, session documents and persona catalog endpoints
    - agent: LLM orchestration for persona replies and suggestions
    - sessions: client-side session lifecycle and reconciliation
    - store: in-memory document store behind the sessions API
    - clients: HTTP adapters used by the UI process
    - ui: Web interface for chat interactions
    - models: domain types and request/response schemas
"""

__version__ = "0.1.0"
