"""Supabase implementation for nutrition record storage."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client, PostgrestAPIError

from nutrition_resolver.domain.errors import DuplicateBarcodeError
from nutrition_resolver.domain.foods import (
    NutritionRecord,
    Provenance,
    ServingUnit,
    Tier,
)
from nutrition_resolver.services.foods import FoodStore

_TABLE = "nutrition_records"
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseFoodStore(FoodStore):
    """Supabase-backed store for every persisted tier."""

    client: Client

    def insert_food(
        self, tier: Tier, owner_id: UUID | None, payload: dict[str, object]
    ) -> NutritionRecord:
        """Insert a record and return it."""
        row = {
            **payload,
            "tier": tier.value,
            "owner_id": str(owner_id) if owner_id else None,
        }
        try:
            response = self.client.table(_TABLE).insert(row).execute()
        except PostgrestAPIError as exc:
            _raise_duplicate(exc, payload)
            raise
        if not response.data:
            raise RuntimeError("Failed to create nutrition record")
        return _parse_food(response.data[0])

    def insert_food_if_absent(
        self, tier: Tier, payload: dict[str, object]
    ) -> NutritionRecord | None:
        """Insert a shared record, ignoring a barcode conflict."""
        response = (
            self.client.table(_TABLE)
            .upsert(
                {**payload, "tier": tier.value, "owner_id": None},
                on_conflict="tier_scope,barcode",
                ignore_duplicates=True,
            )
            .execute()
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def get_food(self, food_id: UUID) -> NutritionRecord | None:
        """Return a record by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("id", str(food_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def update_food(
        self, food_id: UUID, owner_id: UUID, payload: dict[str, object]
    ) -> NutritionRecord | None:
        """Update a private record scoped to its owner."""
        try:
            response = (
                self.client.table(_TABLE)
                .update(payload)
                .eq("id", str(food_id))
                .eq("tier", Tier.PRIVATE.value)
                .eq("owner_id", str(owner_id))
                .execute()
            )
        except PostgrestAPIError as exc:
            _raise_duplicate(exc, payload)
            raise
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def delete_food(self, food_id: UUID, owner_id: UUID) -> bool:
        """Delete a private record scoped to its owner."""
        response = (
            self.client.table(_TABLE)
            .delete()
            .eq("id", str(food_id))
            .eq("tier", Tier.PRIVATE.value)
            .eq("owner_id", str(owner_id))
            .execute()
        )
        return bool(response.data)

    def find_by_barcode(
        self, tier: Tier, barcode: str, owner_id: UUID | None = None
    ) -> NutritionRecord | None:
        """Return the record with a barcode in one tier."""
        query = (
            self.client.table(_TABLE)
            .select("*")
            .eq("tier", tier.value)
            .eq("barcode", barcode)
        )
        if owner_id is not None:
            query = query.eq("owner_id", str(owner_id))
        response = query.limit(1).execute()
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def search_by_name(
        self, tier: Tier, query: str, limit: int, owner_id: UUID | None = None
    ) -> list[NutritionRecord]:
        """Case-insensitive substring search on name."""
        request = (
            self.client.table(_TABLE)
            .select("*")
            .eq("tier", tier.value)
            .ilike("name", f"%{_escape_like(query)}%")
        )
        if owner_id is not None:
            request = request.eq("owner_id", str(owner_id))
        response = request.order("name").limit(limit).execute()
        return [_parse_food(row) for row in response.data or []]

    def list_recent(self, owner_id: UUID, limit: int) -> list[NutritionRecord]:
        """Return an owner's private records, newest first."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("tier", Tier.PRIVATE.value)
            .eq("owner_id", str(owner_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def count(self, tier: Tier, owner_id: UUID | None = None) -> int:
        """Return an exact row count for a tier."""
        request = (
            self.client.table(_TABLE).select("id", count="exact").eq("tier", tier.value)
        )
        if owner_id is not None:
            request = request.eq("owner_id", str(owner_id))
        response = request.limit(1).execute()
        return int(response.count or 0)


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so they match literally.

    PostgREST reads `*` as `%` and has no escape for it, so it becomes a
    single-character match.
    """
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "_")


def _raise_duplicate(exc: PostgrestAPIError, payload: dict[str, object]) -> None:
    if exc.code == _UNIQUE_VIOLATION:
        raise DuplicateBarcodeError(str(payload.get("barcode"))) from exc


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None


def _optional_int(value: object) -> int | None:
    return int(value) if value is not None else None


def _optional_uuid(value: object) -> UUID | None:
    return UUID(str(value)) if value else None


def _parse_food(row: dict[str, object]) -> NutritionRecord:
    """Parse a nutrition_records row into a domain model."""
    created_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else datetime.now(tz=UTC)
    )
    return NutritionRecord(
        id=UUID(str(row["id"])),
        tier=Tier(row.get("tier", Tier.PRIVATE.value)),
        owner_id=_optional_uuid(row.get("owner_id")),
        name=str(row.get("name", "")),
        serving_size_value=float(row.get("serving_size_value", 100.0)),
        serving_size_unit=ServingUnit(row.get("serving_size_unit", "g")),
        calories=float(row.get("calories", 0.0)),
        total_fat=_optional_float(row.get("total_fat")),
        carbohydrates=_optional_float(row.get("carbohydrates")),
        fiber=_optional_float(row.get("fiber")),
        sugars=_optional_float(row.get("sugars")),
        protein=_optional_float(row.get("protein")),
        cholesterol=_optional_int(row.get("cholesterol")),
        sodium=_optional_int(row.get("sodium")),
        barcode=row.get("barcode"),
        source=Provenance(row.get("source", Provenance.MANUAL.value)),
        created_at=created_at,
        source_url=row.get("source_url"),
        contributed_by=_optional_uuid(row.get("contributed_by")),
    )
