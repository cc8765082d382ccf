"""Usage: load tenant profiles from JSON files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from invoice_engine.core.config import settings
from invoice_engine.schemas.tenant import TenantProfile

logger = logging.getLogger(__name__)


@runtime_checkable
class BaseConfigStore(Protocol):
    def load_active_tenants(self) -> list[TenantProfile]:
        """Return every active tenant with its nested rules."""
        ...

    def get_code_mappings(self, tenant_key: str, mapping_type: str) -> dict[str, str]:
        """Return the uppercase code -> display name table of one tenant."""
        ...


class JsonTenantStore(BaseConfigStore):
    """Tenant profiles stored as one ``*.json`` file per tenant."""

    def __init__(self, config_dir: str | Path | None = None) -> None:
        self.config_dir = Path(config_dir or settings.tenant_config_dir)

    def load_tenants(self) -> list[TenantProfile]:
        if not self.config_dir.exists():
            logger.warning("Tenant config directory not found: %s", self.config_dir)
            return []

        tenants: list[TenantProfile] = []
        for path in sorted(self.config_dir.glob("*.json")):
            tenants.append(_load_profile(path))
        return tenants

    def load_active_tenants(self) -> list[TenantProfile]:
        tenants = [tenant for tenant in self.load_tenants() if tenant.is_active]
        logger.info("Loaded %d active tenant configs from %s", len(tenants), self.config_dir)
        return tenants

    def get_code_mappings(self, tenant_key: str, mapping_type: str) -> dict[str, str]:
        for tenant in self.load_tenants():
            if tenant.key == tenant_key:
                return tenant.code_table(mapping_type)
        return {}


def _load_profile(path: Path) -> TenantProfile:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Tenant config {path} is not valid JSON: {exc}") from exc
    try:
        return TenantProfile.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Tenant config {path} is invalid: {exc}") from exc
