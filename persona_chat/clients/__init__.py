"""HTTP clients used by the UI process.

Responsibilities:
    - HttpDocumentStore: session documents and live subscription
    - HttpResponseProvider: streamed persona replies
    - HttpPersonaCatalog: persona listing and AI suggestions
"""

from persona_chat.clients.config import ClientConfig, get_client_config
from persona_chat.clients.personas import HttpPersonaCatalog
from persona_chat.clients.provider import HttpResponseProvider
from persona_chat.clients.remote_store import HttpDocumentStore

__all__ = [
    "ClientConfig",
    "HttpDocumentStore",
    "HttpPersonaCatalog",
    "HttpResponseProvider",
    "get_client_config",
]
