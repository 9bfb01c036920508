"""
Data service broker.

Modules:
  api_config   : YAML loader + dataclass for data-service endpoint definitions.
  http_client  : Async HTTP wrapper with auth, timeout, error handling.
  data_service : Typed facade (rows → domain records) with TTL cache;
                 raises ``DataFetchError`` on failure.

Public API::

    from machine_status.services.broker import data_service
"""

from machine_status.services.broker.data_service import DataService, data_service

__all__ = ["DataService", "data_service"]
