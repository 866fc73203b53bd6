"""Resolution engine cascading across local tiers and Open Food Facts."""

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from nutrition_resolver.domain.errors import FoodValidationError
from nutrition_resolver.domain.foods import (
    ContributionResult,
    FoodDraft,
    SearchSource,
    Tier,
)
from nutrition_resolver.domain.resolution import (
    BarcodeResolution,
    ExternalCandidate,
    FoodSearchResults,
    ResolutionStatus,
)
from nutrition_resolver.services.external import ExternalFoodSource
from nutrition_resolver.services.foods import MIN_QUERY_LENGTH, TieredFoodRepository

_logger = logging.getLogger(__name__)


@dataclass
class ResolutionEngine:
    """Per-request orchestration of barcode lookup, search and contribution.

    Holds no request state. External results are returned, never persisted;
    persisting one is a separate `contribute_food` call.
    """

    repository: TieredFoodRepository
    external_source: ExternalFoodSource
    local_cap: int = 30
    external_cap: int = 20

    async def resolve_barcode(self, user_id: UUID, code: str) -> BarcodeResolution:
        """Resolve a barcode: private, then community, then Open Food Facts."""
        barcode = code.strip()
        if not barcode:
            raise FoodValidationError("barcode must not be empty")

        match = await asyncio.to_thread(
            self.repository.find_by_barcode, barcode, user_id
        )
        if match is not None:
            _logger.debug(
                "Barcode %s resolved locally: tier=%s", barcode, match.tier.value
            )
            return BarcodeResolution(
                status=ResolutionStatus.FOUND,
                barcode=barcode,
                record=match.record,
                tier=match.tier,
                product_url=match.record.source_url,
            )

        candidate = await self.external_source.lookup_by_barcode(barcode)
        if candidate is not None:
            _logger.debug("Barcode %s resolved from Open Food Facts", barcode)
            return BarcodeResolution(
                status=ResolutionStatus.FOUND,
                barcode=barcode,
                record=candidate.record,
                tier=Tier.EXTERNAL,
                product_url=candidate.product_url,
                image_url=candidate.image_url,
            )

        _logger.debug("Barcode %s not found in any tier", barcode)
        return BarcodeResolution(status=ResolutionStatus.NOT_FOUND, barcode=barcode)

    async def search_food(
        self,
        user_id: UUID,
        query: str | None,
        source: SearchSource = SearchSource.ALL,
        limit: int = 20,
        include_external: bool = True,
    ) -> FoodSearchResults:
        """Search local tiers and Open Food Facts concurrently.

        The two result sets are capped independently and kept apart.
        """
        cleaned = (query or "").strip()
        local_limit = max(0, min(limit, self.local_cap))
        external_limit = max(0, min(limit, self.external_cap))
        search_external = (
            include_external
            and external_limit > 0
            and len(cleaned) >= MIN_QUERY_LENGTH
        )

        local_task = asyncio.to_thread(
            self.repository.search, cleaned, user_id, source, local_limit
        )
        if search_external:
            local, external = await asyncio.gather(
                local_task,
                self.external_source.search_by_text(cleaned, external_limit),
            )
        else:
            local = await local_task
            external = []
        return FoodSearchResults(
            local=local[:local_limit],
            external=external[:external_limit],
        )

    async def contribute_food(
        self, user_id: UUID, candidate: FoodDraft | ExternalCandidate
    ) -> ContributionResult:
        """Promote a candidate into the community tier."""
        draft = (
            FoodDraft.from_record(candidate.record)
            if isinstance(candidate, ExternalCandidate)
            else candidate
        )
        return await asyncio.to_thread(self.repository.contribute, user_id, draft)

    async def count_by_tier(self, user_id: UUID) -> dict[str, int]:
        """Return live counts for the private, community and system tiers."""
        tiers = (Tier.PRIVATE, Tier.COMMUNITY, Tier.SYSTEM)
        counts = await asyncio.gather(
            *(
                asyncio.to_thread(self.repository.count_by_tier, user_id, tier)
                for tier in tiers
            )
        )
        return {tier.value: count for tier, count in zip(tiers, counts, strict=True)}

