import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from invoice_engine.api.routes.health import router as health_router
from invoice_engine.api.routes.invoice import router as invoice_router
from invoice_engine.api.routes.tenants import router as tenants_router
from invoice_engine.core.config import settings
from invoice_engine.core.logging import setup_logging
from invoice_engine.services.config.cache import TenantConfigCache
from invoice_engine.services.config.store import JsonTenantStore
from invoice_engine.services.text.document_text import DocumentTextExtractor
from invoice_engine.state import global_state

# configure logging before the app is created
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting invoice extraction service (env=%s)...", settings.app_env)

    logger.info("Loading tenant configs from %s", settings.tenant_config_dir)
    global_state.config_cache = TenantConfigCache(JsonTenantStore(settings.tenant_config_dir))
    tenants = global_state.config_cache.active_tenants()
    logger.info("%d active tenants ready", len(tenants))

    global_state.text_extractor = DocumentTextExtractor()

    logger.info("System ready!")
    yield
    logger.info("Shutting down service...")


app = FastAPI(title="Invoice Extraction Service", lifespan=lifespan)

app.include_router(health_router, prefix="/api")
app.include_router(invoice_router, prefix="/api")
app.include_router(tenants_router, prefix="/api")
