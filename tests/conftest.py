from __future__ import annotations

import pytest

from invoice_engine.core.config import DEFAULT_TENANT_CONFIG_DIR
from invoice_engine.schemas.tenant import TenantProfile
from invoice_engine.services.config.cache import TenantConfigCache
from invoice_engine.services.config.store import JsonTenantStore

TV_INVOICE_TEXT = """STAR NETWORK
TELECAST CERTIFICATE
Invoice No: TV/2024/001
Date Time Programme Spots Duration Rate Amount
01/03/2024 20:00 PRIME NEWS 2 30 1,500.00 3,000.00
02/03/2024 21:30 CRICKET LIVE 1 20 2,000.00 2,000.00
Total Amount: 5,000.00
GST @ 18%: 900.00
"""

RADIO_INVOICE_TEXT = """RADIO CITY 91.1 FM
Release Order Statement
MUM
01.03.2024 - 31.03.2024
(1) 07:00-11:00 30 24 720 73.10 3,289.50
(2) 18:00-23:00 30 10 300 45.00 1,350.00
DEL
01.03.2024 - 15.03.2024
(1) 07:00-11:00 20 15 300 82.50 3,712.50
Sub Total 8,352.00
Grand Total 8,352.00
"""


@pytest.fixture
def tv_text() -> str:
    return TV_INVOICE_TEXT


@pytest.fixture
def radio_text() -> str:
    return RADIO_INVOICE_TEXT


@pytest.fixture
def config_cache() -> TenantConfigCache:
    return TenantConfigCache(JsonTenantStore(DEFAULT_TENANT_CONFIG_DIR))


@pytest.fixture
def tenants(config_cache: TenantConfigCache) -> dict[str, TenantProfile]:
    return {tenant.key: tenant for tenant in config_cache.active_tenants()}
