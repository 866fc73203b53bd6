"""Nutrition record domain models."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from uuid import UUID


class Tier(str, Enum):
    """Ownership and visibility class of a nutrition record."""

    PRIVATE = "private"
    COMMUNITY = "community"
    SYSTEM = "system"
    EXTERNAL = "external"


class ServingUnit(str, Enum):
    """Canonical serving size unit."""

    GRAMS = "g"
    MILLILITERS = "ml"


class Provenance(str, Enum):
    """How the data on a record was obtained."""

    MANUAL = "manual"
    SCAN = "scan"
    API = "api"
    COMMUNITY = "community"
    OPENFOODFACTS = "openfoodfacts"


class SearchSource(str, Enum):
    """Tier filter accepted by food search."""

    ALL = "all"
    PRIVATE = "private"
    SYSTEM = "system"
    COMMUNITY = "community"


NUTRIENT_FIELDS = (
    "total_fat",
    "carbohydrates",
    "fiber",
    "sugars",
    "protein",
    "cholesterol",
    "sodium",
)


@dataclass(frozen=True)
class NutritionRecord:
    """Canonical per-serving nutrition fact sheet."""

    id: UUID | None
    tier: Tier
    owner_id: UUID | None
    name: str
    serving_size_value: float
    serving_size_unit: ServingUnit
    calories: float
    total_fat: float | None
    carbohydrates: float | None
    fiber: float | None
    sugars: float | None
    protein: float | None
    cholesterol: int | None
    sodium: int | None
    barcode: str | None
    source: Provenance
    created_at: datetime
    source_url: str | None = None
    contributed_by: UUID | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the record for JSON responses."""
        return {
            "id": str(self.id) if self.id else None,
            "tier": self.tier.value,
            "name": self.name,
            "serving_size": {
                "value": self.serving_size_value,
                "unit": self.serving_size_unit.value,
            },
            "calories": self.calories,
            "total_fat": self.total_fat,
            "carbohydrates": self.carbohydrates,
            "fiber": self.fiber,
            "sugars": self.sugars,
            "protein": self.protein,
            "cholesterol": self.cholesterol,
            "sodium": self.sodium,
            "barcode": self.barcode,
            "source": self.source.value,
            "source_url": self.source_url,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class FoodDraft:
    """Writable fields of a nutrition record, before it is stored."""

    name: str | None
    serving_size_value: float | None
    serving_size_unit: ServingUnit | None
    calories: float | None
    total_fat: float | None = None
    carbohydrates: float | None = None
    fiber: float | None = None
    sugars: float | None = None
    protein: float | None = None
    cholesterol: int | None = None
    sodium: int | None = None
    barcode: str | None = None
    source: Provenance = Provenance.MANUAL
    source_url: str | None = None

    @classmethod
    def from_record(cls, record: NutritionRecord) -> "FoodDraft":
        """Build a draft from an existing record, e.g. an external result."""
        return cls(
            name=record.name,
            serving_size_value=record.serving_size_value,
            serving_size_unit=record.serving_size_unit,
            calories=record.calories,
            total_fat=record.total_fat,
            carbohydrates=record.carbohydrates,
            fiber=record.fiber,
            sugars=record.sugars,
            protein=record.protein,
            cholesterol=record.cholesterol,
            sodium=record.sodium,
            barcode=record.barcode,
            source=record.source,
            source_url=record.source_url,
        )

    def with_source(self, source: Provenance) -> "FoodDraft":
        """Return a copy of the draft with a different provenance tag."""
        return replace(self, source=source)

    def to_payload(self) -> dict[str, object]:
        """Return the draft as a storage payload."""
        unit = self.serving_size_unit
        return {
            "name": self.name,
            "serving_size_value": self.serving_size_value,
            "serving_size_unit": unit.value if unit else None,
            "calories": self.calories,
            "total_fat": self.total_fat,
            "carbohydrates": self.carbohydrates,
            "fiber": self.fiber,
            "sugars": self.sugars,
            "protein": self.protein,
            "cholesterol": self.cholesterol,
            "sodium": self.sodium,
            "barcode": self.barcode,
            "source": self.source.value,
            "source_url": self.source_url,
        }


@dataclass(frozen=True)
class TieredMatch:
    """A stored record together with the tier it was found in."""

    record: NutritionRecord
    tier: Tier


@dataclass(frozen=True)
class ContributionResult:
    """Outcome of a community contribution."""

    created: bool
    record: NutritionRecord
