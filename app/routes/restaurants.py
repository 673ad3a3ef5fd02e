"""
Restaurant API Endpoints

Plain collection access over the restaurants table.
"""

import logging
from typing import List, Union

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.database import get_db
from app.models import MenuItem, Restaurant
from app.schemas import (
    MessageResponse,
    RestaurantCreate,
    RestaurantResponse,
    RestaurantUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/restaurants", tags=["Restaurants"])

# Caps on list sizes
MAX_RESTAURANTS = 100


def _restaurant_values(payload: Union[RestaurantCreate, RestaurantUpdate], partial: bool) -> dict:
    """Column values from a payload; the address is kept in its wire shape."""
    values = payload.model_dump(exclude_unset=partial, exclude={"address"})
    if partial:
        values = {key: value for key, value in values.items() if value is not None}
    if payload.address is not None:
        values["address"] = payload.address.model_dump(by_alias=True, exclude_none=True)
    return values


async def _get_restaurant(db: AsyncSession, restaurant_id: str) -> Restaurant:
    restaurant = await db.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise NotFoundError("Restaurant not found")
    return restaurant


@router.get("", response_model=List[RestaurantResponse])
async def list_restaurants(db: AsyncSession = Depends(get_db)) -> List[RestaurantResponse]:
    """Active restaurants."""
    result = await db.execute(
        select(Restaurant)
        .where(Restaurant.is_active.is_(True))
        .order_by(Restaurant.rating.desc())
        .limit(MAX_RESTAURANTS)
    )
    return [RestaurantResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/cuisine/{cuisine}", response_model=List[RestaurantResponse])
async def restaurants_by_cuisine(
    cuisine: str,
    db: AsyncSession = Depends(get_db),
) -> List[RestaurantResponse]:
    result = await db.execute(select(Restaurant).where(Restaurant.cuisine == cuisine))
    return [RestaurantResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/search/{query}", response_model=List[RestaurantResponse])
async def search_restaurants(
    query: str,
    db: AsyncSession = Depends(get_db),
) -> List[RestaurantResponse]:
    """Case-insensitive match anywhere in the name."""
    result = await db.execute(
        select(Restaurant).where(Restaurant.name.icontains(query, autoescape=True))
    )
    return [RestaurantResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(
    restaurant_id: str,
    db: AsyncSession = Depends(get_db),
) -> RestaurantResponse:
    restaurant = await _get_restaurant(db, restaurant_id)
    return RestaurantResponse.model_validate(restaurant)


@router.post("", response_model=RestaurantResponse, status_code=201)
async def create_restaurant(
    payload: RestaurantCreate,
    db: AsyncSession = Depends(get_db),
) -> RestaurantResponse:
    restaurant = Restaurant(**_restaurant_values(payload, partial=False))
    db.add(restaurant)
    await db.commit()
    await db.refresh(restaurant)

    logger.info(f"Restaurant {restaurant.name} created ({restaurant.id})")
    return RestaurantResponse.model_validate(restaurant)


@router.put("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: str,
    payload: RestaurantUpdate,
    db: AsyncSession = Depends(get_db),
) -> RestaurantResponse:
    """Update the supplied fields only."""
    restaurant = await _get_restaurant(db, restaurant_id)
    for key, value in _restaurant_values(payload, partial=True).items():
        setattr(restaurant, key, value)
    await db.commit()
    await db.refresh(restaurant)
    return RestaurantResponse.model_validate(restaurant)


@router.delete("/{restaurant_id}", response_model=MessageResponse)
async def delete_restaurant(
    restaurant_id: str,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a restaurant together with its menu."""
    restaurant = await _get_restaurant(db, restaurant_id)
    await db.execute(delete(MenuItem).where(MenuItem.restaurant_id == restaurant_id))
    await db.delete(restaurant)
    await db.commit()

    logger.info(f"Restaurant {restaurant_id} deleted with its menu")
    return MessageResponse(message="Restaurant deleted successfully")
