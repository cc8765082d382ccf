from typing import Annotated

from fastapi import Depends, HTTPException

from invoice_engine.services.amount.base import BaseAmountDecoder
from invoice_engine.services.config.cache import TenantConfigCache
from invoice_engine.services.text.base import BaseTextExtractor
from invoice_engine.state import global_state


async def get_text_extractor() -> BaseTextExtractor:
    if not global_state.text_extractor:
        raise HTTPException(status_code=503, detail="Text extraction service not initialized")
    return global_state.text_extractor


async def get_config_cache() -> TenantConfigCache:
    if not global_state.config_cache:
        raise HTTPException(status_code=503, detail="Tenant configuration not initialized")
    return global_state.config_cache


async def get_amount_decoder() -> BaseAmountDecoder | None:
    return global_state.amount_decoder


TextExtractorDep = Annotated[BaseTextExtractor, Depends(get_text_extractor)]
ConfigCacheDep = Annotated[TenantConfigCache, Depends(get_config_cache)]
AmountDecoderDep = Annotated[BaseAmountDecoder | None, Depends(get_amount_decoder)]
