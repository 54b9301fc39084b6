"""HostClient — thin async wrapper around the agent host's HTTP API.

Used to tell sub-sessions from top-level ones and to post toasts into the
host's TUI. All methods log warnings on failure rather than raising, so a
host hiccup never breaks a notification.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

import voicenotify.core.config as config_module

logger = logging.getLogger(__name__)


class HostClient:
    """Async client for the host's /session and /tui endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        server = config_module.config.server
        self._base = (base_url if base_url is not None else server.host_url).rstrip("/")
        self._timeout = timeout if timeout is not None else server.host_timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def is_sub_session(self, session_id: str | None) -> bool:
        """True when the host says the session has a parent.

        A failed lookup counts as top-level.
        """
        if not session_id or not self._base:
            return False
        try:
            resp = await self._get_client().get(f"{self._base}/session/{session_id}")
            resp.raise_for_status()
            data: dict[str, Any] = resp.json() or {}
            return bool(data.get("parentID"))
        except Exception as e:
            logger.warning(
                "HostClient.is_sub_session(%s) failed: %s",
                session_id,
                e,
                extra={"session_id": session_id},
            )
            return False

    async def show_toast(
        self, message: str, variant: str = "info", duration_ms: int = 5000
    ) -> bool:
        """Post a toast to the host TUI. Returns True on success."""
        if not self._base:
            return False
        try:
            resp = await self._get_client().post(
                f"{self._base}/tui/show-toast",
                json={"message": message, "variant": variant, "duration": duration_ms},
            )
            resp.raise_for_status()
            return True
        except Exception as e:
            logger.warning("HostClient.show_toast failed: %s", e)
            return False

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
