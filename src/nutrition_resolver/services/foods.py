"""Tiered nutrition record repository."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutrition_resolver.domain.errors import (
    DuplicateBarcodeError,
    FoodValidationError,
    ForbiddenTierError,
)
from nutrition_resolver.domain.foods import (
    NUTRIENT_FIELDS,
    ContributionResult,
    FoodDraft,
    NutritionRecord,
    Provenance,
    SearchSource,
    ServingUnit,
    Tier,
    TieredMatch,
)

MIN_QUERY_LENGTH = 2

_UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "serving_size_value",
        "serving_size_unit",
        "calories",
        "barcode",
        *NUTRIENT_FIELDS,
    }
)
_CONTRIBUTION_SOURCES = frozenset({Provenance.COMMUNITY, Provenance.OPENFOODFACTS})
_SEARCH_TIERS = {
    SearchSource.ALL: (Tier.PRIVATE, Tier.SYSTEM, Tier.COMMUNITY),
    SearchSource.PRIVATE: (Tier.PRIVATE,),
    SearchSource.SYSTEM: (Tier.SYSTEM,),
    SearchSource.COMMUNITY: (Tier.COMMUNITY,),
}

_logger = logging.getLogger(__name__)


class FoodStore(Protocol):
    """Persistence interface for nutrition records."""

    def insert_food(
        self, tier: Tier, owner_id: UUID | None, payload: dict[str, object]
    ) -> NutritionRecord:
        """Insert a record and return it."""

    def insert_food_if_absent(
        self, tier: Tier, payload: dict[str, object]
    ) -> NutritionRecord | None:
        """Insert a shared record unless its barcode exists; None on conflict."""

    def get_food(self, food_id: UUID) -> NutritionRecord | None:
        """Return a record by id, if present."""

    def update_food(
        self, food_id: UUID, owner_id: UUID, payload: dict[str, object]
    ) -> NutritionRecord | None:
        """Update a private record owned by `owner_id` and return it."""

    def delete_food(self, food_id: UUID, owner_id: UUID) -> bool:
        """Delete a private record owned by `owner_id`."""

    def find_by_barcode(
        self, tier: Tier, barcode: str, owner_id: UUID | None = None
    ) -> NutritionRecord | None:
        """Return the record with the barcode in a tier, if present."""

    def search_by_name(
        self, tier: Tier, query: str, limit: int, owner_id: UUID | None = None
    ) -> list[NutritionRecord]:
        """Return records whose name contains the query, ordered by name."""

    def list_recent(self, owner_id: UUID, limit: int) -> list[NutritionRecord]:
        """Return an owner's private records, newest first."""

    def count(self, tier: Tier, owner_id: UUID | None = None) -> int:
        """Return the number of records in a tier."""


@dataclass
class TieredFoodRepository:
    """Search, lookup and contribution rules over the record tiers."""

    store: FoodStore

    def find_by_barcode(self, code: str, user_id: UUID) -> TieredMatch | None:
        """Cascade private then community; the system tier has no barcodes."""
        barcode = code.strip()
        if not barcode:
            return None
        private = self.store.find_by_barcode(Tier.PRIVATE, barcode, owner_id=user_id)
        if private is not None:
            return TieredMatch(record=private, tier=Tier.PRIVATE)
        community = self.store.find_by_barcode(Tier.COMMUNITY, barcode)
        if community is not None:
            return TieredMatch(record=community, tier=Tier.COMMUNITY)
        return None

    def search(
        self,
        query: str | None,
        user_id: UUID,
        source: SearchSource = SearchSource.ALL,
        limit: int = 20,
    ) -> list[NutritionRecord]:
        """Search names across tiers, earlier tiers filling the cap first."""
        if limit < 1:
            return []
        cleaned = (query or "").strip()
        if len(cleaned) < MIN_QUERY_LENGTH:
            if source in {SearchSource.ALL, SearchSource.PRIVATE}:
                return self.store.list_recent(user_id, limit)
            return []

        results: list[NutritionRecord] = []
        for tier in _SEARCH_TIERS[source]:
            remaining = limit - len(results)
            if remaining <= 0:
                break
            owner_id = user_id if tier is Tier.PRIVATE else None
            results.extend(
                self.store.search_by_name(tier, cleaned, remaining, owner_id=owner_id)[
                    :remaining
                ]
            )
        return results

    def contribute(self, user_id: UUID, draft: FoodDraft) -> ContributionResult:
        """Add a community record unless one already has the barcode.

        The first submission for a barcode wins; later ones are no-ops.
        """
        _validate_draft(draft, require_barcode=True)
        barcode = (draft.barcode or "").strip()
        source = (
            draft.source
            if draft.source in _CONTRIBUTION_SOURCES
            else Provenance.COMMUNITY
        )
        payload = {
            **draft.with_source(source).to_payload(),
            "barcode": barcode,
            "contributed_by": str(user_id),
        }

        existing = self.store.find_by_barcode(Tier.COMMUNITY, barcode)
        if existing is not None:
            return ContributionResult(created=False, record=existing)

        created = self.store.insert_food_if_absent(Tier.COMMUNITY, payload)
        if created is not None:
            _logger.info("Community food contributed: barcode=%s", barcode)
            return ContributionResult(created=True, record=created)

        # Lost an insert race; the row that won is the canonical one.
        existing = self.store.find_by_barcode(Tier.COMMUNITY, barcode)
        if existing is None:
            raise RuntimeError(f"Community food {barcode} conflicted but is missing")
        return ContributionResult(created=False, record=existing)

    def count_by_tier(self, user_id: UUID, tier: Tier) -> int:
        """Return a live record count for a tier badge."""
        if tier is Tier.EXTERNAL:
            return 0
        owner_id = user_id if tier is Tier.PRIVATE else None
        return self.store.count(tier, owner_id=owner_id)

    def list_foods(self, user_id: UUID, limit: int = 50) -> list[NutritionRecord]:
        """Return the user's private records, newest first."""
        return self.store.list_recent(user_id, limit)

    def create_food(self, user_id: UUID, draft: FoodDraft) -> NutritionRecord:
        """Create a private record for the user."""
        _validate_draft(draft, require_barcode=False)
        payload = draft.to_payload()
        barcode = _clean_barcode(draft.barcode)
        payload["barcode"] = barcode
        if barcode and self.store.find_by_barcode(
            Tier.PRIVATE, barcode, owner_id=user_id
        ):
            raise DuplicateBarcodeError(barcode)
        return self.store.insert_food(Tier.PRIVATE, user_id, payload)

    def get_food(self, user_id: UUID, food_id: UUID) -> NutritionRecord | None:
        """Return the user's own record or a shared one."""
        food = self.store.get_food(food_id)
        if food is None or not _is_visible(food, user_id):
            return None
        return food

    def update_food(
        self, user_id: UUID, food_id: UUID, changes: dict[str, object]
    ) -> NutritionRecord | None:
        """Apply changes to one of the user's private records."""
        current = self._get_owned(user_id, food_id)
        if current is None:
            return None

        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise FoodValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        payload = _validate_changes(changes)
        if not payload:
            return current

        barcode = payload.get("barcode")
        if isinstance(barcode, str) and barcode != current.barcode:
            clash = self.store.find_by_barcode(Tier.PRIVATE, barcode, owner_id=user_id)
            if clash is not None and clash.id != food_id:
                raise DuplicateBarcodeError(barcode)
        return self.store.update_food(food_id, user_id, payload)

    def delete_food(self, user_id: UUID, food_id: UUID) -> bool:
        """Delete one of the user's private records."""
        if self._get_owned(user_id, food_id) is None:
            return False
        return self.store.delete_food(food_id, user_id)

    def _get_owned(self, user_id: UUID, food_id: UUID) -> NutritionRecord | None:
        food = self.store.get_food(food_id)
        if food is None:
            return None
        if food.tier is not Tier.PRIVATE:
            raise ForbiddenTierError(f"{food.tier.value} foods cannot be changed")
        if food.owner_id != user_id:
            return None
        return food


def _is_visible(food: NutritionRecord, user_id: UUID) -> bool:
    if food.tier is Tier.PRIVATE:
        return food.owner_id == user_id
    return True


def _clean_barcode(raw: str | None) -> str | None:
    if raw is None:
        return None
    return raw.strip() or None


def _validate_draft(draft: FoodDraft, *, require_barcode: bool) -> None:
    missing = []
    if not draft.name or not draft.name.strip():
        missing.append("name")
    if draft.serving_size_value is None:
        missing.append("serving_size_value")
    if draft.serving_size_unit is None:
        missing.append("serving_size_unit")
    if draft.calories is None:
        missing.append("calories")
    if require_barcode and not _clean_barcode(draft.barcode):
        missing.append("barcode")
    if missing:
        raise FoodValidationError(f"Missing required fields: {', '.join(missing)}")
    _check_serving_size(draft.serving_size_value)
    _check_non_negative("calories", draft.calories)
    for name in NUTRIENT_FIELDS:
        _check_non_negative(name, getattr(draft, name))


def _validate_changes(changes: dict[str, object]) -> dict[str, object]:
    payload: dict[str, object] = {}
    for key, value in changes.items():
        if key == "name":
            if not isinstance(value, str) or not value.strip():
                raise FoodValidationError("name must not be empty")
            payload[key] = value.strip()
        elif key == "serving_size_value":
            _check_serving_size(value)
            payload[key] = value
        elif key == "serving_size_unit":
            try:
                payload[key] = ServingUnit(value).value
            except ValueError as exc:
                raise FoodValidationError("serving_size_unit must be g or ml") from exc
        elif key == "calories":
            if value is None:
                raise FoodValidationError("calories is required")
            _check_non_negative(key, value)
            payload[key] = value
        elif key == "barcode":
            payload[key] = _clean_barcode(value if isinstance(value, str) else None)
        else:
            _check_non_negative(key, value)
            payload[key] = value
    return payload


def _check_serving_size(value: object) -> None:
    if not isinstance(value, int | float) or isinstance(value, bool) or value <= 0:
        raise FoodValidationError("serving_size_value must be greater than zero")


def _check_non_negative(name: str, value: object) -> None:
    if value is None:
        return
    if not isinstance(value, int | float) or isinstance(value, bool) or value < 0:
        raise FoodValidationError(f"{name} must be a non-negative number")
