"""Error taxonomy of the session core."""

from enum import Enum


class ChatIssue(str, Enum):
    """Conditions reported to the presentation layer instead of raised."""

    NO_ACTIVE_SESSION = "no_active_session"
    NO_PERSONA = "no_persona"
    EMPTY_MESSAGE = "empty_message"
    CHAT_NOT_FOUND = "chat_not_found"
    REMOTE_WRITE_FAILED = "remote_write_failed"
    PROVIDER_ERROR = "provider_error"


class RemoteStoreError(Exception):
    """Raised when the remote document store cannot be reached or refuses an operation."""

    pass


class ProviderError(Exception):
    """Raised when the response provider fails to generate a reply."""

    pass
