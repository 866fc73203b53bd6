"""Pydantic models for food API payloads."""

from dataclasses import replace

from pydantic import BaseModel, Field

from nutrition_resolver.domain.foods import FoodDraft, Provenance, ServingUnit


class FoodCreateRequest(BaseModel):
    """Payload for creating a private food."""

    name: str = Field(min_length=1, max_length=255)
    serving_size_value: float = Field(gt=0)
    serving_size_unit: ServingUnit
    calories: float = Field(ge=0)
    total_fat: float | None = Field(default=None, ge=0)
    carbohydrates: float | None = Field(default=None, ge=0)
    fiber: float | None = Field(default=None, ge=0)
    sugars: float | None = Field(default=None, ge=0)
    protein: float | None = Field(default=None, ge=0)
    cholesterol: int | None = Field(default=None, ge=0)
    sodium: int | None = Field(default=None, ge=0)
    barcode: str | None = Field(default=None, max_length=32)
    source: Provenance = Provenance.MANUAL

    def to_draft(self) -> FoodDraft:
        """Convert the payload into a domain draft."""
        return FoodDraft(
            name=self.name,
            serving_size_value=self.serving_size_value,
            serving_size_unit=self.serving_size_unit,
            calories=self.calories,
            total_fat=self.total_fat,
            carbohydrates=self.carbohydrates,
            fiber=self.fiber,
            sugars=self.sugars,
            protein=self.protein,
            cholesterol=self.cholesterol,
            sodium=self.sodium,
            barcode=self.barcode,
            source=self.source,
        )


class ContributionRequest(FoodCreateRequest):
    """Payload for contributing a food to the community pool."""

    barcode: str = Field(min_length=1, max_length=32)
    source: Provenance = Provenance.COMMUNITY
    source_url: str | None = None

    def to_draft(self) -> FoodDraft:
        """Convert the payload into a domain draft."""
        return replace(super().to_draft(), source_url=self.source_url)


class FoodUpdateRequest(BaseModel):
    """Partial update for a private food; omitted fields stay unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    serving_size_value: float | None = Field(default=None, gt=0)
    serving_size_unit: ServingUnit | None = None
    calories: float | None = Field(default=None, ge=0)
    total_fat: float | None = Field(default=None, ge=0)
    carbohydrates: float | None = Field(default=None, ge=0)
    fiber: float | None = Field(default=None, ge=0)
    sugars: float | None = Field(default=None, ge=0)
    protein: float | None = Field(default=None, ge=0)
    cholesterol: int | None = Field(default=None, ge=0)
    sodium: int | None = Field(default=None, ge=0)
    barcode: str | None = Field(default=None, max_length=32)

    def changes(self) -> dict[str, object]:
        """Return only the fields the caller sent."""
        return self.model_dump(mode="json", exclude_unset=True)
