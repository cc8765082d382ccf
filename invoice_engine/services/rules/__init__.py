"""Usage: configuration-driven tenant classification and row extraction."""

from invoice_engine.services.rules.extraction_engine import ExtractionEngine
from invoice_engine.services.rules.tenant_classifier import TenantClassifier, TenantMatch

__all__ = ["ExtractionEngine", "TenantClassifier", "TenantMatch"]
