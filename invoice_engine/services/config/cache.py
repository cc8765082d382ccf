"""Usage: read-through cache over a config store, invalidated explicitly after edits."""

from __future__ import annotations

import logging
import threading

from invoice_engine.schemas.tenant import TenantProfile
from invoice_engine.services.config.store import BaseConfigStore

logger = logging.getLogger(__name__)


class TenantConfigCache:
    def __init__(self, store: BaseConfigStore) -> None:
        self.store = store
        self._lock = threading.Lock()
        self._tenants: list[TenantProfile] | None = None
        self._code_tables: dict[tuple[str, str], dict[str, str]] = {}

    def active_tenants(self) -> list[TenantProfile]:
        tenants = self._tenants
        if tenants is None:
            with self._lock:
                if self._tenants is None:
                    self._tenants = self.store.load_active_tenants()
                tenants = self._tenants
        return tenants

    def code_mappings(self, tenant_key: str, mapping_type: str) -> dict[str, str]:
        key = (tenant_key, mapping_type.strip().upper())
        table = self._code_tables.get(key)
        if table is None:
            table = self.store.get_code_mappings(*key)
            with self._lock:
                self._code_tables[key] = table
        return table

    def invalidate(self) -> None:
        """Drop everything cached; call after any tenant configuration change."""

        logger.info("Invalidating tenant config cache")
        with self._lock:
            self._tenants = None
            self._code_tables = {}
