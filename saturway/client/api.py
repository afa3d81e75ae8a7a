"""Async HTTP client for the Saturway API with bearer-token injection."""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from saturway.client.errors import ApiError, RequestTimeoutError, error_message
from saturway.client.session import SessionStore

logger = logging.getLogger(__name__)


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 30.0,
        session: Optional[SessionStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self._token: Optional[str] = session.token if session else None
        self._http = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout_s, transport=transport)

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token
        if self.session:
            self.session.set_token(token)

    def clear_token(self) -> None:
        self._token = None
        if self.session:
            self.session.clear_token()

    async def request(self, method: str, endpoint: str, data: Any = None) -> Any:
        headers = {}
        kwargs: dict[str, Any] = {}
        # Empty bodies are sent without a payload or content type.
        if data:
            kwargs["json"] = data
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = await self._http.request(method, endpoint, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError() from exc
        except httpx.HTTPError as exc:
            raise ApiError(str(exc) or "Network error") from exc

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            if response.status_code == 401:
                logger.info("Received 401 from %s %s; clearing token", method, endpoint)
                self.clear_token()
            raise ApiError(error_message(body, response.status_code), response.status_code, body)

        if not response.content:
            return None
        return response.json()

    async def get(self, endpoint: str) -> Any:
        return await self.request("GET", endpoint)

    async def post(self, endpoint: str, data: Any = None) -> Any:
        return await self.request("POST", endpoint, data)

    async def patch(self, endpoint: str, data: Any = None) -> Any:
        return await self.request("PATCH", endpoint, data)

    async def delete(self, endpoint: str) -> Any:
        return await self.request("DELETE", endpoint)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
