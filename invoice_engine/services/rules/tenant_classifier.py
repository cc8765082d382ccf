"""Usage: pick the tenant profile whose identifier rules best match a document."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from invoice_engine.schemas.tenant import TenantProfile
from invoice_engine.services.config.cache import TenantConfigCache
from invoice_engine.services.rules.pattern_matcher import compile_pattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantMatch:
    tenant: TenantProfile
    score: int


def score_tenant(text: str, tenant: TenantProfile) -> int:
    """Sum the weights of every identifier rule found anywhere in ``text``."""

    total = 0
    for identifier in tenant.identifiers:
        regex = compile_pattern(identifier.pattern, re.IGNORECASE)
        if regex is None:
            logger.warning(
                "Invalid identifier pattern for tenant %s: %r",
                tenant.key,
                identifier.pattern,
            )
            continue
        if regex.search(text):
            total += identifier.weight
    return total


def match_tenant(text: str, tenants: Iterable[TenantProfile]) -> TenantMatch | None:
    """Best strictly-greater score wins; tenants are visited by ascending key."""

    best_match: TenantMatch | None = None
    best_score = 0
    for tenant in sorted(tenants, key=lambda item: item.key):
        if not tenant.is_active:
            continue
        score = score_tenant(text, tenant)
        logger.debug("Tenant %s scored %d points", tenant.key, score)
        if score > best_score:
            best_score = score
            best_match = TenantMatch(tenant=tenant, score=score)
    return best_match


class TenantClassifier:
    def __init__(self, config_cache: TenantConfigCache) -> None:
        self.config_cache = config_cache

    def classify(self, text: str) -> TenantMatch | None:
        match = match_tenant(text, self.config_cache.active_tenants())
        if match is None:
            logger.warning("No tenant matched the provided document")
        else:
            logger.info("Identified tenant: %s (score: %d)", match.tenant.key, match.score)
        return match
