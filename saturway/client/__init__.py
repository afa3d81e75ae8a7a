"""Async client data store for the Saturway API."""
from saturway.client.api import ApiClient
from saturway.client.errors import ApiError, RequestTimeoutError
from saturway.client.store import AppState

__all__ = ["ApiClient", "ApiError", "AppState", "RequestTimeoutError"]
