from invoice_engine.services.amount.base import BaseAmountDecoder
from invoice_engine.services.config.cache import TenantConfigCache
from invoice_engine.services.text.base import BaseTextExtractor


class AppState:
    text_extractor: BaseTextExtractor | None = None
    config_cache: TenantConfigCache | None = None
    amount_decoder: BaseAmountDecoder | None = None


global_state = AppState()
