"""Domain exceptions for caller-facing failures."""


class FoodValidationError(ValueError):
    """Raised when a write carries missing or invalid fields."""


class DuplicateBarcodeError(FoodValidationError):
    """Raised when an owner already has a private record with the barcode."""

    def __init__(self, barcode: str) -> None:
        super().__init__(f"A food with barcode {barcode} already exists")
        self.barcode = barcode


class ForbiddenTierError(PermissionError):
    """Raised when a caller tries to change a shared record."""
