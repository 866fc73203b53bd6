"""Rate-limited access to the Open Food Facts database."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace

import httpx

from nutrition_resolver.adapters.off_client import SEARCH_FIELDS, OpenFoodFactsClient
from nutrition_resolver.domain.resolution import (
    ExternalCandidate,
    ExternalLookup,
    LookupStatus,
)
from nutrition_resolver.services.normalizer import normalize_product, product_url
from nutrition_resolver.services.rate_limiter import SlidingWindowRateLimiter

_logger = logging.getLogger(__name__)

_HTTP_NOT_FOUND = 404


@dataclass
class ExternalFoodSource:
    """Barcode lookup and text search against Open Food Facts.

    Every failure mode degrades to an empty result. Callers only ever see a
    candidate, None, or an empty list; the tagged `ExternalLookup` keeps the
    reason for logs.
    """

    client: OpenFoodFactsClient
    barcode_limiter: SlidingWindowRateLimiter
    search_limiter: SlidingWindowRateLimiter
    web_base_url: str = "https://world.openfoodfacts.org"
    language: str = "en"

    async def fetch_barcode(self, code: str) -> ExternalLookup:
        """Look up a barcode and report why it was or wasn't found."""
        if not self.barcode_limiter.try_acquire():
            _logger.warning("Open Food Facts barcode rate limit exceeded")
            return ExternalLookup.unavailable("rate_limited")

        try:
            payload = await self.client.get_product(code)
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            if status_code == _HTTP_NOT_FOUND:
                return ExternalLookup.not_found("http_404")
            _logger.warning(
                "Open Food Facts lookup failed: barcode=%s status=%s",
                code,
                status_code,
            )
            return ExternalLookup.unavailable(f"http_{status_code}")
        except httpx.TimeoutException:
            _logger.warning("Open Food Facts lookup timed out: barcode=%s", code)
            return ExternalLookup.unavailable("timeout")
        except (httpx.HTTPError, ValueError) as exc:
            _logger.warning(
                "Open Food Facts lookup transport error: barcode=%s error=%s",
                code,
                exc,
            )
            return ExternalLookup.unavailable("transport")

        if not isinstance(payload, Mapping):
            _logger.warning("Open Food Facts returned a non-object payload")
            return ExternalLookup.unavailable("invalid_payload")
        product = payload.get("product")
        if payload.get("status") != 1 or not isinstance(product, Mapping):
            return ExternalLookup.not_found("no_product")

        candidate = self._to_candidate(product, code)
        if candidate is None:
            return ExternalLookup.not_found("no_energy")
        return ExternalLookup.found(candidate)

    async def lookup_by_barcode(self, code: str) -> ExternalCandidate | None:
        """Return a normalized candidate for the barcode, or None."""
        lookup = await self.fetch_barcode(code)
        if lookup.status is LookupStatus.FOUND:
            return lookup.candidate
        _logger.info(
            "Open Food Facts miss: barcode=%s status=%s reason=%s",
            code,
            lookup.status.value,
            lookup.reason,
        )
        return None

    async def search_by_text(self, query: str, limit: int) -> list[ExternalCandidate]:
        """Search by text; returns an empty list on any failure."""
        if limit < 1:
            return []
        if not self.search_limiter.try_acquire():
            _logger.warning("Open Food Facts search rate limit exceeded")
            return []

        try:
            payload = await self.client.search_products(
                query, page_size=limit, fields=self._search_fields()
            )
        except (httpx.HTTPError, ValueError) as exc:
            _logger.warning(
                "Open Food Facts search failed: query=%s error=%s", query, exc
            )
            return []

        products = payload.get("products") if isinstance(payload, Mapping) else None
        if not isinstance(products, list):
            return []

        results: list[ExternalCandidate] = []
        for product in products:
            if not isinstance(product, Mapping):
                continue
            barcode = str(product.get("code") or "").strip()
            if not barcode:
                continue
            candidate = self._to_candidate(product, barcode)
            if candidate is not None:
                results.append(candidate)
            if len(results) >= limit:
                break
        return results

    def _to_candidate(
        self, product: Mapping[str, object], barcode: str
    ) -> ExternalCandidate | None:
        record = normalize_product(product, barcode, language=self.language)
        if record is None:
            return None
        url = product_url(self.web_base_url, barcode)
        image_url = product.get("image_url")
        record = replace(record, source_url=url)
        return ExternalCandidate(
            record=record,
            product_name=record.name,
            product_url=url,
            image_url=image_url if isinstance(image_url, str) and image_url else None,
        )

    def _search_fields(self) -> tuple[str, ...]:
        localized = f"product_name_{self.language}"
        if localized in SEARCH_FIELDS:
            return SEARCH_FIELDS
        return (*SEARCH_FIELDS, localized)
