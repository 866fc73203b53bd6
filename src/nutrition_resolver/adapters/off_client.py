"""Open Food Facts API client."""

from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

SEARCH_FIELDS = (
    "code",
    "product_name",
    "product_name_en",
    "nutriments",
    "serving_quantity",
    "serving_quantity_unit",
    "image_url",
)


class OpenFoodFactsClient(Protocol):
    """Interface for Open Food Facts API interactions."""

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode and return raw API data."""

    async def search_products(
        self,
        query: str,
        page_size: int = 20,
        fields: tuple[str, ...] = SEARCH_FIELDS,
    ) -> dict[str, object]:
        """Search products by text and return raw API data."""


@dataclass
class HttpxOpenFoodFactsClient(OpenFoodFactsClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    user_agent: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 10.0

    @classmethod
    def create(
        cls, base_url: str, user_agent: str, timeout_seconds: float = 10.0
    ) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            user_agent=user_agent,
            http_client=httpx.AsyncClient(timeout=timeout_seconds),
            timeout_seconds=timeout_seconds,
        )

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode."""
        url = f"{self.base_url}/api/v2/product/{quote(barcode, safe='')}.json"
        response = await self.http_client.get(
            url,
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def search_products(
        self,
        query: str,
        page_size: int = 20,
        fields: tuple[str, ...] = SEARCH_FIELDS,
    ) -> dict[str, object]:
        """Search products by free text."""
        url = f"{self.base_url}/api/v2/search"
        response = await self.http_client.get(
            url,
            params={
                "search_terms": query,
                "page_size": str(page_size),
                "fields": ",".join(fields),
            },
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
