"""Client configuration with environment variable loading."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()


class ClientConfig(BaseModel):
    """Configuration for the UI-side HTTP clients.

    Attributes:
        api_base_url: Base URL of the Persona Chat API.
        user_id: Identity whose sessions the UI manages.
        request_timeout: Seconds before a request is abandoned.
        reconnect_delay: Seconds between subscription reconnect attempts.
    """

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000"),
        description="Base URL of the Persona Chat API",
    )
    user_id: str = Field(
        default_factory=lambda: os.getenv("CHAT_USER_ID", "local-user"),
        description="User whose chat sessions are managed",
    )
    request_timeout: float = Field(default=120.0, gt=0, description="Request timeout in seconds")
    reconnect_delay: float = Field(
        default=2.0,
        ge=0,
        description="Delay before re-opening a dropped session subscription",
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("User id required. Set CHAT_USER_ID in .env")
        return v.strip()


def get_client_config() -> ClientConfig:
    """Create client configuration from environment."""
    return ClientConfig()
