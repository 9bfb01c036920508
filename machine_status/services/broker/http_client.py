"""
HTTPClient — Async HTTP wrapper with auth resolution.

Single Responsibility: execute a single HTTP request given an
``APIEndpoint`` config.  No YAML loading, no caching, no routing.

Handles:
  - Bearer-token injection from an environment variable.
  - Timeout enforcement per endpoint.
  - Path placeholder filling (``/machines/{machine_id}/history``).
  - Structured error handling — never raises; returns error dicts.

Usage::

    from machine_status.services.broker.http_client import http_client

    result = await http_client.fetch(endpoint, path_params={"machine_id": 7})
    # result = {"ok": True, "data": [...], "status": 200}
    # or      {"ok": False, "error": "Timeout after 15s", "status": 0}
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import httpx

from machine_status.services.broker.api_config import APIEndpoint

logger = logging.getLogger(__name__)

# Reusable result type
APIResult = Dict[str, Any]


class HTTPClient:
    """
    Executes async HTTP requests based on ``APIEndpoint`` definitions.

    Stateless — each call creates and destroys its own
    ``httpx.AsyncClient``.  A custom *transport* can be injected
    (``httpx.MockTransport`` in tests).
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport

    async def fetch(
        self,
        endpoint: APIEndpoint,
        path_params: Optional[Dict[str, Any]] = None,
        extra_params: Optional[Dict[str, Any]] = None,
    ) -> APIResult:
        """
        Execute a single GET request for the given endpoint.

        Args:
            endpoint:      Parsed APIEndpoint from YAML config.
            path_params:   Values for ``{placeholders}`` in the path.
            extra_params:  Additional query params to merge.

        Returns:
            ``{"ok": True, "data": ..., "status": int, "api_id": str}``
            or ``{"ok": False, "error": str, "status": int, "api_id": str}``
        """
        headers = self._build_headers(endpoint)
        params = {
            k: v
            for k, v in {**endpoint.params, **(extra_params or {})}.items()
            if v is not None
        }

        try:
            url = endpoint.url(path_params)
        except KeyError as exc:
            return self._error_result(
                endpoint.api_id, f"Missing path parameter {exc}", 0,
            )

        try:
            async with httpx.AsyncClient(
                timeout=endpoint.timeout, transport=self._transport,
            ) as client:
                response = await client.request(
                    endpoint.method, url, headers=headers, params=params,
                )

            if response.status_code >= 400:
                return self._error_result(
                    endpoint.api_id,
                    f"HTTP {response.status_code}: {response.text[:200]}",
                    response.status_code,
                )

            return {
                "ok": True,
                "data": response.json(),
                "status": response.status_code,
                "api_id": endpoint.api_id,
            }

        except httpx.TimeoutException:
            return self._error_result(
                endpoint.api_id,
                f"Timeout after {endpoint.timeout}s",
                0,
            )
        except httpx.ConnectError as exc:
            return self._error_result(
                endpoint.api_id,
                f"Connection failed: {exc}",
                0,
            )
        except (httpx.HTTPError, ValueError) as exc:
            return self._error_result(
                endpoint.api_id,
                f"Unexpected error: {exc}",
                0,
            )

    # ─────────────────────────────────────────────────────────
    #  INTERNAL HELPERS
    # ─────────────────────────────────────────────────────────

    def _build_headers(self, endpoint: APIEndpoint) -> Dict[str, str]:
        """Merge default JSON header + endpoint headers + auth."""
        headers = {
            "Content-Type": "application/json",
            **endpoint.headers,
        }
        auth_header = self._resolve_auth(endpoint)
        if auth_header:
            headers.update(auth_header)
        return headers

    @staticmethod
    def _resolve_auth(endpoint: APIEndpoint) -> Optional[Dict[str, str]]:
        """
        Read the auth token from environment and return the header.

        Supports: bearer, none.
        """
        if endpoint.auth_type == "none" or not endpoint.auth_env_var:
            return None

        token = os.environ.get(endpoint.auth_env_var, "")
        if not token:
            logger.warning(
                f"[HTTPClient] Env var '{endpoint.auth_env_var}' is empty "
                f"for api_id='{endpoint.api_id}'"
            )
            return None

        if endpoint.auth_type == "bearer":
            return {"Authorization": f"Bearer {token}"}

        return None

    @staticmethod
    def _error_result(api_id: str, error: str, status: int) -> APIResult:
        """Build a standardized error result dict."""
        logger.error(f"[HTTPClient] {api_id}: {error}")
        return {
            "ok": False,
            "error": error,
            "status": status,
            "api_id": api_id,
            "data": None,
        }


# ── Singleton ────────────────────────────────────────────────────
http_client = HTTPClient()
