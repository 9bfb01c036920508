"""
APIConfig — YAML loader for data-service endpoint definitions.

Single Responsibility: parse ``data_service.yml`` into typed dataclasses.
No HTTP calls, no caching, no business logic.

Usage::

    from machine_status.services.broker.api_config import api_config_loader

    configs = api_config_loader.get_all()        # dict[str, APIEndpoint]
    ep = api_config_loader.get("machine_history") # APIEndpoint | None
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from machine_status.core.config import settings

logger = logging.getLogger(__name__)

# Path to the YAML config file (relative to machine_status/config/)
_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "data_service.yml"


# ── Dataclass ────────────────────────────────────────────────────

@dataclass(frozen=True)
class APIEndpoint:
    """
    Immutable definition of a single data-service endpoint.

    Parsed from one entry in ``data_service.yml``.
    """
    api_id: str
    name: str
    path: str
    method: str = "GET"
    timeout: int = 10
    auth_type: str = "none"
    auth_env_var: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    cache_ttl: int = 0
    enabled: bool = True

    def url(self, path_params: Optional[Dict[str, Any]] = None) -> str:
        """Full URL with ``{placeholders}`` filled from *path_params*."""
        path = self.path.format(**(path_params or {}))
        return settings.data_service_url_for(path)


# ── Loader ───────────────────────────────────────────────────────

class APIConfigLoader:
    """
    Loads and caches the parsed endpoint definitions from YAML.

    The YAML is read once on first access and cached in memory.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = config_path or _default_config_path()
        self._endpoints: Dict[str, APIEndpoint] = {}
        self._loaded = False

    def get_all(self) -> Dict[str, APIEndpoint]:
        """Return all configured endpoints (keyed by api_id)."""
        self._ensure_loaded()
        return dict(self._endpoints)

    def get(self, api_id: str) -> Optional[APIEndpoint]:
        """Return a single endpoint by its api_id, or ``None``."""
        self._ensure_loaded()
        return self._endpoints.get(api_id)

    def list_ids(self) -> List[str]:
        """Return all registered api_id keys."""
        self._ensure_loaded()
        return list(self._endpoints.keys())

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # ── Internal ─────────────────────────────────────────────

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._load()

    def _load(self) -> None:
        """Parse the YAML file into APIEndpoint dataclasses."""
        if not self._config_path.exists():
            logger.warning(
                f"[APIConfig] Config file not found: {self._config_path}"
            )
            self._loaded = True
            return

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            logger.error(f"[APIConfig] YAML parse error: {exc}")
            self._loaded = True
            return

        if not raw or not isinstance(raw, dict):
            logger.info("[APIConfig] No endpoints configured in YAML")
            self._loaded = True
            return

        for api_id, definition in raw.items():
            if not isinstance(definition, dict):
                continue
            try:
                endpoint = APIEndpoint(
                    api_id=api_id,
                    name=definition.get("name", api_id),
                    path=definition["path"],
                    method=definition.get("method", "GET").upper(),
                    timeout=int(definition.get("timeout", 10)),
                    auth_type=definition.get("auth_type", "none"),
                    auth_env_var=definition.get("auth_env_var"),
                    headers=definition.get("headers") or {},
                    params=definition.get("params") or {},
                    cache_ttl=int(definition.get("cache_ttl", 0)),
                    enabled=definition.get("enabled", True),
                )
                self._endpoints[api_id] = endpoint
            except (KeyError, ValueError, TypeError) as exc:
                logger.error(
                    f"[APIConfig] Skipping invalid entry '{api_id}': {exc}"
                )

        self._loaded = True
        logger.info(
            f"[APIConfig] Loaded {len(self._endpoints)} endpoint(s)"
        )


def _default_config_path() -> Path:
    if settings.DATA_SERVICE_CONFIG:
        return Path(settings.DATA_SERVICE_CONFIG)
    return _CONFIG_PATH


# ── Singleton ────────────────────────────────────────────────────
api_config_loader = APIConfigLoader()
