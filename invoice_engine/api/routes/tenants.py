import logging

from fastapi import APIRouter

from invoice_engine.api.deps import ConfigCacheDep
from invoice_engine.schemas.common import StatusResponse

router = APIRouter(prefix="/tenants", tags=["tenants"])

logger = logging.getLogger(__name__)


@router.post(
    "/cache/invalidate",
    summary="Reload tenant configuration",
    response_model=StatusResponse,
)
async def invalidate_tenant_cache(config_cache: ConfigCacheDep) -> StatusResponse:
    """Called by the configuration admin after editing tenant rules."""

    config_cache.invalidate()
    return StatusResponse(status="ok", detail="Tenant configuration cache cleared.")
