"""Async HTTP client for the session API.

Transport failures and 5xx responses are retried with exponential backoff;
every operation is safe to re-issue. Error payloads are mapped back to the
exceptions in ``focustrack.errors``.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from focustrack.errors import ERRORS_BY_CODE, FocusTrackError, NotFound

logger = logging.getLogger(__name__)


class SessionApiError(FocusTrackError):
    """Session API unreachable or failing."""

    status_code = 502
    code = "api_error"


@dataclass
class SessionApiConfig:
    base_url: str = "http://localhost:8000"
    user_id: str = ""
    timeout: float = 10.0
    max_retries: int = 3
    backoff_base: float = 0.5


class SessionApiClient:
    def __init__(self, config: SessionApiConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            headers={"X-User-Id": config.user_id, "Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SessionApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # Public API ---------------------------------------------------------
    async def start(
        self,
        strategy: str,
        custom_goal: Optional[str] = None,
        target_duration: Optional[int] = None,
        break_ratio: Optional[int] = None,
    ) -> dict:
        body: dict[str, Any] = {"strategy": strategy, "customGoal": custom_goal or None}
        if target_duration is not None:
            body["targetDuration"] = target_duration
        if break_ratio is not None:
            body["breakRatio"] = break_ratio
        return await self._request("POST", "/api/session/start", json=body)

    async def pause(self, session_id: str) -> dict:
        return await self._request("POST", f"/api/session/{session_id}/pause")

    async def resume(self, session_id: str) -> dict:
        return await self._request("POST", f"/api/session/{session_id}/resume")

    async def end(self, session_id: str, actual_duration: int) -> dict:
        return await self._request(
            "POST", f"/api/session/{session_id}/end", json={"actualDuration": actual_duration}
        )

    async def interrupt(self, session_id: str, actual_duration: Optional[int] = None) -> dict:
        body = {"actualDuration": actual_duration} if actual_duration is not None else None
        return await self._request("POST", f"/api/session/{session_id}/interrupt", json=body)

    async def continue_session(self, session_id: str) -> dict:
        return await self._request("POST", f"/api/session/{session_id}/continue")

    async def record_break(self, session_id: str, break_taken: int) -> dict:
        return await self._request(
            "POST", f"/api/session/{session_id}/break", json={"breakTaken": break_taken}
        )

    async def get(self, session_id: str) -> dict:
        return await self._request("GET", f"/api/session/{session_id}")

    async def active(self) -> Optional[dict]:
        try:
            return await self._request("GET", "/api/session/active")
        except NotFound:
            return None

    # Internal -----------------------------------------------------------
    async def _request(self, method: str, path: str, json: Any = None) -> dict:
        attempt = 0
        while True:
            try:
                resp = await self._client.request(method, path, json=json)
                if resp.status_code >= 500:
                    raise SessionApiError(f"HTTP {resp.status_code}: {resp.text[:200]}")
            except (httpx.TransportError, SessionApiError) as e:
                attempt += 1
                if attempt > self._config.max_retries:
                    if isinstance(e, SessionApiError):
                        raise
                    raise SessionApiError(f"{method} {path} failed: {e}") from e
                delay = self._config.backoff_base * (2 ** (attempt - 1))
                logger.warning(
                    "%s %s failed (%s); retry %s/%s in %.2fs",
                    method,
                    path,
                    e,
                    attempt,
                    self._config.max_retries,
                    delay,
                )
                await asyncio.sleep(delay)
                continue

            if resp.status_code >= 400:
                raise _error_from_response(resp)
            return resp.json()


def _error_from_response(resp: httpx.Response) -> FocusTrackError:
    try:
        payload = resp.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    detail = payload.get("detail") or f"HTTP {resp.status_code}"
    error_cls = ERRORS_BY_CODE.get(payload.get("error") or "")
    if error_cls is None:
        if resp.status_code == 422:
            error_cls = ERRORS_BY_CODE["validation_error"]
        else:
            return SessionApiError(str(detail))
    return error_cls(str(detail))


__all__ = ["SessionApiClient", "SessionApiConfig", "SessionApiError"]
