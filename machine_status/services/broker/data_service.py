"""
DataService — typed facade over the remote machine data service.

Single Responsibility: given an ``api_id``, load its config, execute
the request via HTTPClient and turn the JSON rows into domain records.
Adds an optional in-memory TTL cache for catalog endpoints (``cache_ttl``
in YAML); the status-change log is configured with ``cache_ttl: 0`` and
is always fetched fresh.

Unlike HTTPClient, failures are NOT returned as dicts: a failed fetch
raises ``DataFetchError`` so that report generation aborts as a whole.

Usage::

    from machine_status.services.broker.data_service import data_service

    machines = await data_service.get_machines()
    history  = await data_service.get_machine_history(machine_id=7)
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, TypeVar

from machine_status.core.errors import DataFetchError
from machine_status.models.domain import (
    Department,
    DepartmentLeader,
    Machine,
    MachineOperator,
    StatusChangeEvent,
    StatusType,
)
from machine_status.services.broker.api_config import (
    APIConfigLoader,
    api_config_loader,
)
from machine_status.services.broker.http_client import HTTPClient, http_client

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _CacheEntry:
    """Internal TTL cache entry."""
    __slots__ = ("data", "expires_at")

    def __init__(self, data: Any, ttl: int):
        self.data = data
        self.expires_at = time.monotonic() + ttl


class DataService:
    """
    High-level client for the machine data service.

    Responsibilities:
      1. Resolve ``api_id`` → ``APIEndpoint`` via APIConfigLoader.
      2. Delegate HTTP execution to HTTPClient.
      3. Cache successful responses for ``cache_ttl`` seconds.
      4. Convert rows into domain records; raise on any failure.
    """

    def __init__(
        self,
        client: Optional[HTTPClient] = None,
        config_loader: Optional[APIConfigLoader] = None,
    ) -> None:
        self._client = client or http_client
        self._config = config_loader or api_config_loader
        self._cache: Dict[str, _CacheEntry] = {}

    # ─────────────────────────────────────────────────────────
    #  RAW ACCESS
    # ─────────────────────────────────────────────────────────

    async def fetch(
        self,
        api_id: str,
        path_params: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        bypass_cache: bool = False,
    ) -> Any:
        """
        Fetch the payload of an endpoint by its ``api_id``.

        Raises:
            DataFetchError: unknown/disabled endpoint or failed request.
        """
        endpoint = self._config.get(api_id)
        if endpoint is None:
            raise DataFetchError(api_id, "endpoint not found in data_service.yml")
        if not endpoint.enabled:
            raise DataFetchError(api_id, "endpoint is disabled")

        cache_key = _cache_key(api_id, path_params, params)
        if not bypass_cache and endpoint.cache_ttl > 0:
            cached = self._get_cached(cache_key)
            if cached is not None:
                return cached

        result = await self._client.fetch(
            endpoint, path_params=path_params, extra_params=params,
        )
        if not result["ok"]:
            raise DataFetchError(api_id, result["error"], result["status"])

        data = result["data"]
        if endpoint.cache_ttl > 0:
            self._cache[cache_key] = _CacheEntry(data, endpoint.cache_ttl)
        return data

    def clear_cache(self, api_id: Optional[str] = None) -> None:
        """
        Clear the TTL cache.

        Args:
            api_id: If given, clear only that endpoint's keys. Otherwise clear all.
        """
        if api_id is None:
            self._cache.clear()
            return
        prefix = f"{api_id}|"
        for key in [k for k in self._cache if k.startswith(prefix)]:
            del self._cache[key]

    # ─────────────────────────────────────────────────────────
    #  TYPED ACCESSORS
    # ─────────────────────────────────────────────────────────

    async def get_machines(self) -> List[Machine]:
        rows = await self.fetch("machines")
        return _parse_rows("machines", rows, Machine.from_api)

    async def get_machine_history(self, machine_id: int) -> List[StatusChangeEvent]:
        """Full status-change log of one machine, in whatever order it arrives."""
        rows = await self.fetch(
            "machine_history", path_params={"machine_id": machine_id},
        )
        return _parse_rows("machine_history", rows, StatusChangeEvent.from_api)

    async def get_status_history(self) -> List[StatusChangeEvent]:
        rows = await self.fetch("status_history")
        return _parse_rows("status_history", rows, StatusChangeEvent.from_api)

    async def get_departments(self) -> List[Department]:
        rows = await self.fetch("departments")
        departments = _parse_rows("departments", rows, Department.from_api)
        return sorted(departments, key=lambda d: d.name)

    async def get_status_types(self) -> List[StatusType]:
        rows = await self.fetch("status_types")
        types = _parse_rows("status_types", rows, StatusType.from_api)
        return sorted(types, key=lambda t: t.display_order)

    async def get_department_leaders(self, user_id: int) -> List[DepartmentLeader]:
        rows = await self.fetch("department_leaders", params={"user_id": user_id})
        return _parse_rows("department_leaders", rows, DepartmentLeader.from_api)

    async def get_machine_operators(self, user_id: int) -> List[MachineOperator]:
        rows = await self.fetch("machine_operators", params={"user_id": user_id})
        return _parse_rows("machine_operators", rows, MachineOperator.from_api)

    # ─────────────────────────────────────────────────────────
    #  INTERNAL HELPERS
    # ─────────────────────────────────────────────────────────

    def _get_cached(self, key: str) -> Optional[Any]:
        """Return cached payload if still valid, else None."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        if time.monotonic() > entry.expires_at:
            del self._cache[key]
            return None
        logger.debug(f"[DataService] Cache hit for '{key}'")
        return entry.data


def _cache_key(
    api_id: str,
    path_params: Optional[Dict[str, Any]],
    params: Optional[Dict[str, Any]],
) -> str:
    extra = json.dumps(
        {"path": path_params or {}, "query": params or {}},
        sort_keys=True,
        default=str,
    )
    return f"{api_id}|{extra}"


def _parse_rows(
    api_id: str,
    rows: Any,
    factory: Callable[[Dict[str, Any]], T],
) -> List[T]:
    """
    Build domain records from a JSON list.

    ``None`` is treated as an empty list.  Anything else that is not a
    list of objects is a malformed response and raises.  Row-level
    parse errors (bad timestamps, missing keys) propagate unchanged.
    """
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise DataFetchError(api_id, f"expected a JSON list, got {type(rows).__name__}")
    return [factory(row) for row in rows]


# ── Singleton ────────────────────────────────────────────────────
data_service = DataService()
