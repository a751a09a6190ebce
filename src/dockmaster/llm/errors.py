"""
Errors raised while scoping a request with a model provider.

The HTTP layer maps each class to a status code through `status_code`.
"""
from typing import Optional


class ScopeError(Exception):
    """Base class for scope request failures."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProviderNotConfiguredError(ScopeError):
    """The provider credential is missing from the environment."""
    status_code = 500


class UpstreamProviderError(ScopeError):
    """The provider call failed or returned an error status."""
    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.detail = detail

    def __str__(self) -> str:
        text = self.message
        if self.upstream_status is not None:
            text = f"{text}: {self.upstream_status}"
        if self.detail:
            text = f"{text} - {self.detail}"
        return text


class InvalidModelOutputError(UpstreamProviderError):
    """The provider answered, but the content is empty or does not fit the schema."""


def truncate_detail(text: str, limit: int) -> str:
    text = (text or "").strip()
    if limit <= 0 or len(text) <= limit:
        return text
    return text[:limit] + "..."
