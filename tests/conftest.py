"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from nutrition_resolver.adapters.off_client import SEARCH_FIELDS, OpenFoodFactsClient
from nutrition_resolver.config import Settings
from nutrition_resolver.containers import AppContainer
from nutrition_resolver.domain.foods import (
    NutritionRecord,
    Provenance,
    ServingUnit,
    Tier,
)
from nutrition_resolver.services.external import ExternalFoodSource
from nutrition_resolver.services.foods import FoodStore, TieredFoodRepository
from nutrition_resolver.services.rate_limiter import SlidingWindowRateLimiter
from nutrition_resolver.services.resolution import ResolutionEngine


@dataclass
class FakeClock:
    """Manually advanced monotonic clock."""

    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class InMemoryFoodStore(FoodStore):
    """In-memory nutrition record store for tests."""

    foods: dict[UUID, NutritionRecord] = field(default_factory=dict)
    _tick: int = 0

    def insert_food(
        self, tier: Tier, owner_id: UUID | None, payload: dict[str, object]
    ) -> NutritionRecord:
        food = self._build(tier, owner_id, payload)
        self.foods[food.id] = food
        return food

    def insert_food_if_absent(
        self, tier: Tier, payload: dict[str, object]
    ) -> NutritionRecord | None:
        barcode = payload.get("barcode")
        if barcode and self.find_by_barcode(tier, str(barcode)) is not None:
            return None
        return self.insert_food(tier, None, payload)

    def get_food(self, food_id: UUID) -> NutritionRecord | None:
        return self.foods.get(food_id)

    def update_food(
        self, food_id: UUID, owner_id: UUID, payload: dict[str, object]
    ) -> NutritionRecord | None:
        current = self.foods.get(food_id)
        if current is None or current.owner_id != owner_id:
            return None
        changes = dict(payload)
        if "serving_size_unit" in changes:
            changes["serving_size_unit"] = ServingUnit(changes["serving_size_unit"])
        updated = replace(current, **changes)
        self.foods[food_id] = updated
        return updated

    def delete_food(self, food_id: UUID, owner_id: UUID) -> bool:
        current = self.foods.get(food_id)
        if current is None or current.owner_id != owner_id:
            return False
        del self.foods[food_id]
        return True

    def find_by_barcode(
        self, tier: Tier, barcode: str, owner_id: UUID | None = None
    ) -> NutritionRecord | None:
        for food in self.foods.values():
            if food.tier is not tier or food.barcode != barcode:
                continue
            if owner_id is not None and food.owner_id != owner_id:
                continue
            return food
        return None

    def search_by_name(
        self, tier: Tier, query: str, limit: int, owner_id: UUID | None = None
    ) -> list[NutritionRecord]:
        query_lower = query.lower()
        matches = [
            food
            for food in self.foods.values()
            if food.tier is tier
            and (owner_id is None or food.owner_id == owner_id)
            and query_lower in food.name.lower()
        ]
        return sorted(matches, key=lambda food: food.name)[:limit]

    def list_recent(self, owner_id: UUID, limit: int) -> list[NutritionRecord]:
        owned = [
            food
            for food in self.foods.values()
            if food.tier is Tier.PRIVATE and food.owner_id == owner_id
        ]
        return sorted(owned, key=lambda food: food.created_at, reverse=True)[:limit]

    def count(self, tier: Tier, owner_id: UUID | None = None) -> int:
        return sum(
            1
            for food in self.foods.values()
            if food.tier is tier and (owner_id is None or food.owner_id == owner_id)
        )

    def add(
        self,
        tier: Tier,
        name: str,
        owner_id: UUID | None = None,
        **fields: object,
    ) -> NutritionRecord:
        """Seed a record directly, e.g. for the system tier."""
        payload: dict[str, object] = {
            "name": name,
            "serving_size_value": 100,
            "serving_size_unit": "g",
            "calories": 100,
            "source": "api" if tier is Tier.SYSTEM else "manual",
            **fields,
        }
        return self.insert_food(tier, owner_id, payload)

    def _build(
        self, tier: Tier, owner_id: UUID | None, payload: dict[str, object]
    ) -> NutritionRecord:
        self._tick += 1
        created_at = datetime(2026, 1, 1, tzinfo=UTC) + timedelta(seconds=self._tick)
        contributed_by = payload.get("contributed_by")
        return NutritionRecord(
            id=uuid4(),
            tier=tier,
            owner_id=owner_id,
            name=str(payload["name"]),
            serving_size_value=float(payload["serving_size_value"]),
            serving_size_unit=ServingUnit(payload["serving_size_unit"]),
            calories=float(payload["calories"]),
            total_fat=payload.get("total_fat"),
            carbohydrates=payload.get("carbohydrates"),
            fiber=payload.get("fiber"),
            sugars=payload.get("sugars"),
            protein=payload.get("protein"),
            cholesterol=payload.get("cholesterol"),
            sodium=payload.get("sodium"),
            barcode=payload.get("barcode"),
            source=Provenance(payload.get("source", "manual")),
            created_at=created_at,
            source_url=payload.get("source_url"),
            contributed_by=UUID(str(contributed_by)) if contributed_by else None,
        )


@dataclass
class FakeOpenFoodFactsClient(OpenFoodFactsClient):
    """Fake Open Food Facts client that records calls."""

    products: dict[str, dict[str, object]] = field(default_factory=dict)
    search_payload: dict[str, object] = field(
        default_factory=lambda: {"products": []}
    )
    error: Exception | None = None
    product_calls: list[str] = field(default_factory=list)
    search_calls: list[tuple[str, int]] = field(default_factory=list)

    async def get_product(self, barcode: str) -> dict[str, object]:
        self.product_calls.append(barcode)
        if self.error is not None:
            raise self.error
        product = self.products.get(barcode)
        if product is None:
            return {"status": 0, "status_verbose": "product not found"}
        return {"status": 1, "code": barcode, "product": product}

    async def search_products(
        self,
        query: str,
        page_size: int = 20,
        fields: tuple[str, ...] = SEARCH_FIELDS,
    ) -> dict[str, object]:
        self.search_calls.append((query, page_size))
        if self.error is not None:
            raise self.error
        return self.search_payload


def make_external_source(
    client: OpenFoodFactsClient,
    barcode_capacity: int = 10,
    search_capacity: int = 30,
    clock: FakeClock | None = None,
) -> ExternalFoodSource:
    resolved_clock = clock or FakeClock()
    return ExternalFoodSource(
        client=client,
        barcode_limiter=SlidingWindowRateLimiter(
            capacity=barcode_capacity, clock=resolved_clock
        ),
        search_limiter=SlidingWindowRateLimiter(
            capacity=search_capacity, clock=resolved_clock
        ),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
    )


@pytest.fixture
def store() -> InMemoryFoodStore:
    return InMemoryFoodStore()


@pytest.fixture
def repository(store: InMemoryFoodStore) -> TieredFoodRepository:
    return TieredFoodRepository(store)


@pytest.fixture
def off_client() -> FakeOpenFoodFactsClient:
    return FakeOpenFoodFactsClient()


@pytest.fixture
def engine(
    repository: TieredFoodRepository, off_client: FakeOpenFoodFactsClient
) -> ResolutionEngine:
    return ResolutionEngine(
        repository=repository,
        external_source=make_external_source(off_client),
    )


@pytest.fixture
def container(
    settings: Settings,
    repository: TieredFoodRepository,
    engine: ResolutionEngine,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        food_repository=repository,
        external_source=engine.external_source,
        resolution_engine=engine,
        close_resources=close_resources,
    )
