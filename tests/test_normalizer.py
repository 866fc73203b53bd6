"""Tests for Open Food Facts product normalization."""

from nutrition_resolver.domain.foods import Provenance, ServingUnit, Tier
from nutrition_resolver.services.normalizer import (
    UNKNOWN_PRODUCT_NAME,
    grams_to_milligrams,
    normalize_product,
    product_url,
)


def test_per_100g_fallback_when_no_serving_energy() -> None:
    product = {
        "product_name": "Crackers",
        "serving_quantity": "30",
        "nutriments": {
            "energy-kcal_100g": 480,
            "fat_100g": 20,
            "proteins_100g": 9,
        },
    }

    record = normalize_product(product, "111")

    assert record is not None
    assert record.serving_size_value == 100
    assert record.serving_size_unit is ServingUnit.GRAMS
    assert record.calories == 480
    assert record.total_fat == 20
    assert record.protein == 9
    assert record.carbohydrates is None


def test_uses_serving_values_when_quantity_and_serving_energy_present() -> None:
    product = {
        "product_name": "Cola",
        "serving_quantity": "330 ml",
        "serving_quantity_unit": " ML ",
        "nutriments": {
            "energy-kcal_serving": 139,
            "energy-kcal_100g": 42,
            "sugars_serving": 35,
            "sugars_100g": 10.6,
        },
    }

    record = normalize_product(product, "222")

    assert record is not None
    assert record.serving_size_value == 330
    assert record.serving_size_unit is ServingUnit.MILLILITERS
    assert record.calories == 139
    assert record.sugars == 35


def test_unit_other_than_ml_defaults_to_grams() -> None:
    product = {
        "serving_quantity": 28,
        "serving_quantity_unit": "oz",
        "nutriments": {"energy-kcal_serving": 150},
    }

    record = normalize_product(product, "333")

    assert record is not None
    assert record.serving_size_unit is ServingUnit.GRAMS
    assert record.serving_size_value == 28


def test_missing_energy_rejects_product() -> None:
    product = {
        "product_name": "Mystery",
        "nutriments": {"fat_100g": 3, "energy_100g": 900},
    }

    assert normalize_product(product, "444") is None


def test_missing_nutriments_rejects_product() -> None:
    assert normalize_product({"product_name": "Empty"}, "555") is None


def test_serving_energy_without_quantity_needs_per_100g_energy() -> None:
    product = {
        "nutriments": {"energy-kcal_serving": 90},
    }

    assert normalize_product(product, "666") is None


def test_sodium_and_cholesterol_scaled_to_milligrams() -> None:
    product = {
        "product_name": "Soup",
        "nutriments": {
            "energy-kcal_100g": 40,
            "sodium_100g": 0.4,
            "cholesterol_100g": 0.012,
        },
    }

    record = normalize_product(product, "777")

    assert record is not None
    assert record.sodium == 400
    assert record.cholesterol == 12


def test_grams_to_milligrams_rounds_half_up() -> None:
    assert grams_to_milligrams(0.0625) == 63
    assert grams_to_milligrams(0.0014) == 1
    assert grams_to_milligrams(1.2) == 1200
    assert grams_to_milligrams(None) is None


def test_name_prefers_localized_then_default_then_placeholder() -> None:
    nutriments = {"energy-kcal_100g": 100}

    localized = normalize_product(
        {
            "product_name_en": "Oat Drink",
            "product_name": "Haferdrink",
            "nutriments": nutriments,
        },
        "1",
    )
    default = normalize_product(
        {
            "product_name_en": "  ",
            "product_name": "Haferdrink",
            "nutriments": nutriments,
        },
        "2",
    )
    unnamed = normalize_product({"nutriments": nutriments}, "3")

    assert localized is not None and localized.name == "Oat Drink"
    assert default is not None and default.name == "Haferdrink"
    assert unnamed is not None and unnamed.name == UNKNOWN_PRODUCT_NAME


def test_record_is_external_transient_with_barcode() -> None:
    record = normalize_product(
        {"nutriments": {"energy-kcal_100g": "250"}}, "0123456789012"
    )

    assert record is not None
    assert record.id is None
    assert record.tier is Tier.EXTERNAL
    assert record.source is Provenance.OPENFOODFACTS
    assert record.barcode == "0123456789012"
    assert record.calories == 250


def test_non_numeric_nutrients_are_absent() -> None:
    record = normalize_product(
        {"nutriments": {"energy-kcal_100g": 100, "fat_100g": "n/a"}}, "9"
    )

    assert record is not None
    assert record.total_fat is None


def test_product_url() -> None:
    assert (
        product_url("https://world.openfoodfacts.org/", "123")
        == "https://world.openfoodfacts.org/product/123"
    )


def test_oversized_integers_are_treated_as_absent() -> None:
    huge = int("9" * 400)
    product = {
        "product_name": "Broken Import",
        "serving_quantity": huge,
        "nutriments": {
            "energy-kcal_100g": 120,
            "energy-kcal_serving": 60,
            "fat_100g": huge,
            "sodium_100g": 1e307,
        },
    }

    record = normalize_product(product, "888")

    assert record is not None
    assert record.serving_size_value == 100
    assert record.calories == 120
    assert record.total_fat is None
    assert record.sodium is None
