"""Error handling utilities."""

from typing import Optional


class LgtmError(Exception):
    """Base exception for the LGTM backend."""
    pass


class ConfigurationError(LgtmError):
    """Required configuration value missing or invalid."""
    pass


class SupabaseError(LgtmError):
    """Supabase operation error."""
    pass


class NetworkAccessError(LgtmError):
    """
    HTTP call against a JSON API failed.

    Transport failures (DNS, connection refused) carry a synthetic 500 status
    and the underlying message; application failures carry the real status
    code and the raw response body.
    """

    TRANSPORT_STATUS = 500

    def __init__(self, status: int, body: str, transport: bool = False):
        self.status = status
        self.body = body
        self.transport = transport
        super().__init__(f"status={status}, body={body}")

    @property
    def is_transport_failure(self) -> bool:
        return self.transport


class ChatApiError(LgtmError):
    """Slack Web API returned an error."""

    def __init__(self, error: str, method: Optional[str] = None):
        self.error = error
        self.method = method
        super().__init__(f"{method or 'slack'} failed: {error}")


class NotInChannelError(ChatApiError):
    """The acting credential is not a member of the target channel."""
    pass


class EmptySearchResultError(LgtmError):
    """Keyword image search returned no candidates."""

    def __init__(self, keyword: str):
        self.keyword = keyword
        super().__init__(f"No images found for keyword: {keyword}")
