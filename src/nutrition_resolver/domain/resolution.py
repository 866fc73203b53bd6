"""Domain models for barcode and text resolution outcomes."""

from dataclasses import dataclass, field
from enum import Enum

from nutrition_resolver.domain.foods import NutritionRecord, Tier


class LookupStatus(str, Enum):
    """Internal outcome of an external source lookup."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"


class ResolutionStatus(str, Enum):
    """Caller-facing outcome of a barcode resolution."""

    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ExternalCandidate:
    """A normalized, not yet persisted result from the open food database."""

    record: NutritionRecord
    product_name: str
    product_url: str
    image_url: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the candidate for JSON responses."""
        return {
            "food": self.record.to_dict(),
            "product_name": self.product_name,
            "product_url": self.product_url,
            "image_url": self.image_url,
        }


@dataclass(frozen=True)
class ExternalLookup:
    """Tagged result of a single external barcode lookup."""

    status: LookupStatus
    candidate: ExternalCandidate | None = None
    reason: str | None = None

    @classmethod
    def found(cls, candidate: ExternalCandidate) -> "ExternalLookup":
        return cls(status=LookupStatus.FOUND, candidate=candidate)

    @classmethod
    def not_found(cls, reason: str | None = None) -> "ExternalLookup":
        return cls(status=LookupStatus.NOT_FOUND, reason=reason)

    @classmethod
    def unavailable(cls, reason: str) -> "ExternalLookup":
        return cls(status=LookupStatus.UPSTREAM_UNAVAILABLE, reason=reason)


@dataclass(frozen=True)
class BarcodeResolution:
    """Result of resolving a barcode across every tier."""

    status: ResolutionStatus
    barcode: str
    record: NutritionRecord | None = None
    tier: Tier | None = None
    product_url: str | None = None
    image_url: str | None = None

    @property
    def found(self) -> bool:
        return self.status is ResolutionStatus.FOUND


@dataclass(frozen=True)
class FoodSearchResults:
    """Separately tagged local and external search results."""

    local: list[NutritionRecord] = field(default_factory=list)
    external: list[ExternalCandidate] = field(default_factory=list)
