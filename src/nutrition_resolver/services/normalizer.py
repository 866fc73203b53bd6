"""Normalize Open Food Facts products into canonical nutrition records."""

import math
import re
from collections.abc import Mapping
from datetime import UTC, datetime

from nutrition_resolver.domain.foods import (
    NutritionRecord,
    Provenance,
    ServingUnit,
    Tier,
)

UNKNOWN_PRODUCT_NAME = "Unknown Product"
PER_100_SERVING_VALUE = 100.0

_SERVING_SUFFIX = "_serving"
_PER_100_SUFFIX = "_100g"
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")


def normalize_product(
    product: Mapping[str, object], barcode: str, *, language: str = "en"
) -> NutritionRecord | None:
    """Convert a raw product payload into a per-serving record.

    Returns None when the product carries no energy value for the chosen
    basis, since a record without calories cannot be tracked.
    """
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, Mapping):
        return None

    unit = _serving_unit(product.get("serving_quantity_unit"))
    serving_quantity = _parse_serving_quantity(product.get("serving_quantity"))
    has_serving_data = (
        serving_quantity is not None
        and nutriments.get(f"energy-kcal{_SERVING_SUFFIX}") is not None
    )
    if has_serving_data:
        suffix = _SERVING_SUFFIX
        serving_value = serving_quantity
    else:
        suffix = _PER_100_SUFFIX
        serving_value = PER_100_SERVING_VALUE

    def nutrient(key: str) -> float | None:
        return _to_number(nutriments.get(f"{key}{suffix}"))

    calories = nutrient("energy-kcal")
    if calories is None:
        return None

    return NutritionRecord(
        id=None,
        tier=Tier.EXTERNAL,
        owner_id=None,
        name=_product_name(product, language),
        serving_size_value=serving_value,
        serving_size_unit=unit,
        calories=calories,
        total_fat=nutrient("fat"),
        carbohydrates=nutrient("carbohydrates"),
        fiber=nutrient("fiber"),
        sugars=nutrient("sugars"),
        protein=nutrient("proteins"),
        cholesterol=grams_to_milligrams(nutrient("cholesterol")),
        sodium=grams_to_milligrams(nutrient("sodium")),
        barcode=barcode,
        source=Provenance.OPENFOODFACTS,
        created_at=datetime.now(tz=UTC),
    )


def grams_to_milligrams(value: float | None) -> int | None:
    """Scale grams to whole milligrams, rounding halves up."""
    if value is None:
        return None
    scaled = value * 1000 + 0.5
    if not math.isfinite(scaled):
        return None
    return math.floor(scaled)


def product_url(base_url: str, barcode: str) -> str:
    """Return the public product page for a barcode."""
    return f"{base_url.rstrip('/')}/product/{barcode}"


def _serving_unit(raw: object) -> ServingUnit:
    if isinstance(raw, str) and raw.strip().lower() == "ml":
        return ServingUnit.MILLILITERS
    return ServingUnit.GRAMS


def _parse_serving_quantity(raw: object) -> float | None:
    """Parse values such as 30, "30", "30g" or "240 ml"."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        try:
            value = float(raw)
        except OverflowError:
            return None
    else:
        match = _LEADING_NUMBER.match(str(raw))
        if not match:
            return None
        value = float(match.group(1))
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def _to_number(raw: object) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(value):
        return None
    return value


def _product_name(product: Mapping[str, object], language: str) -> str:
    for key in (f"product_name_{language}", "product_name"):
        value = product.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return UNKNOWN_PRODUCT_NAME
