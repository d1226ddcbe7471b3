"""
Async client for the Worklog store service.

Covers the two halves the UI needs: identity (sign in/up/out, current user,
identity-change notifications) and the owner-scoped ``work_sessions`` table.
Failures surface as ``StoreError`` / ``AuthError`` carrying a readable message.
"""
from __future__ import annotations

import inspect
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union

import httpx
from pydantic import BaseModel

from worklog import config
from worklog.dates import to_iso

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"


class StoreError(Exception):
    """A store request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthError(StoreError):
    pass


class Identity(BaseModel):
    id: str
    email: str


class WorkSession(BaseModel):
    id: int
    user_id: str
    check_in: datetime
    check_out: Optional[datetime] = None
    total_hours: Optional[float] = None


IdentityCallback = Callable[[str, Optional[Identity]], Union[None, Awaitable[None]]]


class Subscription:
    """Handle for an identity-change listener; usable as a context manager."""

    def __init__(self, listeners: list[IdentityCallback], callback: IdentityCallback):
        self._listeners = listeners
        self.callback = callback

    @property
    def active(self) -> bool:
        return self.callback in self._listeners

    def unsubscribe(self) -> None:
        if self.callback in self._listeners:
            self._listeners.remove(self.callback)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.unsubscribe()


def _encode(fields: dict[str, Any]) -> dict[str, Any]:
    return {k: to_iso(v) if isinstance(v, datetime) else v for k, v in fields.items()}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # pydantic validation errors
        detail = "; ".join(str(d.get("msg", d)) for d in detail)
    return str(detail or response.reason_phrase or f"HTTP {response.status_code}")


class SessionStore:
    """Client for the store service.

    Args:
        base_url: Service URL; defaults to ``WORKLOG_API_URL``.
        access_token: Previously issued token, to restore a signed-in identity.
        transport: Optional httpx transport (e.g. ``httpx.ASGITransport`` in tests).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url or config.api_url()
        self.access_token = access_token
        self.identity: Optional[Identity] = None
        self._listeners: list[IdentityCallback] = []
        self._http = httpx.AsyncClient(
            base_url=self.base_url, transport=transport, timeout=timeout
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "SessionStore":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # --- identity ---

    def on_identity_change(self, callback: IdentityCallback) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    async def _emit(self, event: str, identity: Optional[Identity]) -> None:
        for callback in list(self._listeners):
            result = callback(event, identity)
            if inspect.isawaitable(result):
                await result

    async def get_current_identity(self) -> Optional[Identity]:
        """The signed-in identity, or None. A rejected token is dropped."""
        if not self.access_token:
            return None
        try:
            response = await self._request("GET", "/auth/user")
        except StoreError as e:
            if e.status_code == 401:
                logger.info("Stored token rejected, signing out locally")
                self.access_token = None
                self.identity = None
                return None
            raise
        self.identity = Identity.model_validate(response.json())
        return self.identity

    async def _authenticate(self, path: str, email: str, password: str) -> Identity:
        try:
            response = await self._request(
                "POST", path, json={"email": email, "password": password}
            )
        except StoreError as e:
            raise AuthError(e.message, e.status_code) from e
        body = response.json()
        self.access_token = body["access_token"]
        self.identity = Identity.model_validate(body["user"])
        await self._emit(SIGNED_IN, self.identity)
        return self.identity

    async def sign_up(self, email: str, password: str) -> Identity:
        return await self._authenticate("/auth/signup", email, password)

    async def sign_in(self, email: str, password: str) -> Identity:
        return await self._authenticate("/auth/signin", email, password)

    async def sign_out(self) -> None:
        """Revoke the token server-side, then forget it locally either way."""
        try:
            if self.access_token:
                await self._request("POST", "/auth/signout")
        except StoreError as e:
            raise AuthError(e.message, e.status_code) from e
        finally:
            self.access_token = None
            self.identity = None
            await self._emit(SIGNED_OUT, None)

    # --- work_sessions table ---

    async def select_sessions(self, owner: str, ascending: bool = True) -> list[WorkSession]:
        response = await self._request(
            "GET",
            "/api/sessions",
            params={"user_id": owner, "order": "asc" if ascending else "desc"},
        )
        return [WorkSession.model_validate(row) for row in response.json()]

    async def insert_session(self, row: dict[str, Any]) -> WorkSession:
        response = await self._request("POST", "/api/sessions", json=_encode(row))
        return WorkSession.model_validate(response.json())

    async def update_session(self, session_id: int, fields: dict[str, Any]) -> WorkSession:
        response = await self._request(
            "PATCH", f"/api/sessions/{session_id}", json=_encode(fields)
        )
        return WorkSession.model_validate(response.json())

    async def delete_session(self, session_id: int) -> None:
        await self._request("DELETE", f"/api/sessions/{session_id}")

    # --- transport ---

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"Could not reach the store: {e}") from e
        if response.is_error:
            raise StoreError(_error_message(response), response.status_code)
        return response
