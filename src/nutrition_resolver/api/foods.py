"""Food resolution endpoints.

Authentication happens upstream; the gateway forwards the caller's id in the
`X-User-Id` header.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from nutrition_resolver.api.models import (
    ContributionRequest,
    FoodCreateRequest,
    FoodUpdateRequest,
)
from nutrition_resolver.domain.foods import SearchSource

if TYPE_CHECKING:
    from nutrition_resolver.containers import AppContainer

router = APIRouter(prefix="/foods", tags=["foods"])

MAX_SEARCH_LIMIT = 50


async def require_user(x_user_id: str | None = Header(default=None)) -> UUID:
    """Return the authenticated user id forwarded by the gateway."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    try:
        return UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("/barcode/{code}")
async def resolve_barcode(
    code: str, request: Request, user_id: UUID = Depends(require_user)
) -> JSONResponse:
    """Resolve a barcode across every tier."""
    resolution = await _container(request).resolution_engine.resolve_barcode(
        user_id, code
    )
    if not resolution.found or resolution.record is None or resolution.tier is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"status": "not_found", "barcode": resolution.barcode},
        )
    return JSONResponse(
        content={
            "status": "found",
            "tier": resolution.tier.value,
            "food": resolution.record.to_dict(),
            "product_url": resolution.product_url,
            "image_url": resolution.image_url,
        }
    )


@router.get("/search")
async def search_foods(  # noqa: PLR0913
    request: Request,
    q: str = "",
    source: SearchSource = SearchSource.ALL,
    limit: int = 20,
    external: bool = True,
    user_id: UUID = Depends(require_user),
) -> dict[str, object]:
    """Search local tiers and Open Food Facts, returned separately."""
    container = _container(request)
    bounded_limit = min(max(limit, 1), MAX_SEARCH_LIMIT)
    results = await container.resolution_engine.search_food(
        user_id,
        q,
        source=source,
        limit=bounded_limit,
        include_external=external,
    )
    counts = await container.resolution_engine.count_by_tier(user_id)
    return {
        "local": [food.to_dict() for food in results.local],
        "external": [candidate.to_dict() for candidate in results.external],
        "counts": counts,
    }


@router.post("/community")
async def contribute_food(
    payload: ContributionRequest,
    request: Request,
    user_id: UUID = Depends(require_user),
) -> JSONResponse:
    """Contribute a food to the community pool; first submission wins."""
    result = await _container(request).resolution_engine.contribute_food(
        user_id, payload.to_draft()
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        content={"created": result.created, "food": result.record.to_dict()},
    )


@router.get("")
async def list_foods(
    request: Request, limit: int = 50, user_id: UUID = Depends(require_user)
) -> dict[str, object]:
    """Return the caller's private foods, newest first."""
    bounded_limit = min(max(limit, 1), MAX_SEARCH_LIMIT)
    foods = _container(request).food_repository.list_foods(user_id, bounded_limit)
    return {"foods": [food.to_dict() for food in foods]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_food(
    payload: FoodCreateRequest,
    request: Request,
    user_id: UUID = Depends(require_user),
) -> dict[str, object]:
    """Create a private food."""
    food = _container(request).food_repository.create_food(
        user_id, payload.to_draft()
    )
    return food.to_dict()


@router.get("/{food_id}")
async def get_food(
    food_id: UUID, request: Request, user_id: UUID = Depends(require_user)
) -> dict[str, object]:
    """Return one of the caller's foods or a shared food."""
    food = _container(request).food_repository.get_food(user_id, food_id)
    if food is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return food.to_dict()


@router.patch("/{food_id}")
async def update_food(
    food_id: UUID,
    payload: FoodUpdateRequest,
    request: Request,
    user_id: UUID = Depends(require_user),
) -> dict[str, object]:
    """Update one of the caller's private foods."""
    food = _container(request).food_repository.update_food(
        user_id, food_id, payload.changes()
    )
    if food is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return food.to_dict()


@router.delete("/{food_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_food(
    food_id: UUID, request: Request, user_id: UUID = Depends(require_user)
) -> None:
    """Delete one of the caller's private foods."""
    if not _container(request).food_repository.delete_food(user_id, food_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
