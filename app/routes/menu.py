"""
Menu API Endpoints

Menu items are listed with a short summary of their restaurant. Public
listings only show items that are currently available.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.database import get_db
from app.models import MenuItem, Restaurant
from app.schemas import (
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    MessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menu", tags=["Menu"])

# Caps on list sizes
MAX_MENU_ITEMS = 200
MAX_CATEGORY_ITEMS = 100
MAX_SEARCH_RESULTS = 50


async def _load_menu_item(db: AsyncSession, item_id: str, reload: bool = False) -> MenuItem:
    """Fetch an item with its restaurant; ``reload`` bypasses the identity map."""
    query = select(MenuItem).where(MenuItem.id == item_id)
    if reload:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFoundError("Menu item not found")
    return item


async def _ensure_restaurant(db: AsyncSession, restaurant_id: str) -> None:
    if await db.get(Restaurant, restaurant_id) is None:
        raise ValidationError([f"restaurantId: Restaurant {restaurant_id} does not exist"])


def _available_items():
    return select(MenuItem).where(MenuItem.is_available.is_(True))


@router.get("", response_model=List[MenuItemResponse])
async def list_menu_items(db: AsyncSession = Depends(get_db)) -> List[MenuItemResponse]:
    """All available menu items."""
    result = await db.execute(_available_items().limit(MAX_MENU_ITEMS))
    return [MenuItemResponse.model_validate(item) for item in result.scalars().all()]


@router.get("/restaurant/{restaurant_id}", response_model=List[MenuItemResponse])
async def list_restaurant_menu(
    restaurant_id: str,
    db: AsyncSession = Depends(get_db),
) -> List[MenuItemResponse]:
    result = await db.execute(
        _available_items().where(MenuItem.restaurant_id == restaurant_id)
    )
    return [MenuItemResponse.model_validate(item) for item in result.scalars().all()]


@router.get("/category/{category}", response_model=List[MenuItemResponse])
async def list_category(
    category: str,
    db: AsyncSession = Depends(get_db),
) -> List[MenuItemResponse]:
    result = await db.execute(
        _available_items()
        .where(MenuItem.category == category)
        .limit(MAX_CATEGORY_ITEMS)
    )
    return [MenuItemResponse.model_validate(item) for item in result.scalars().all()]


@router.get("/search/{query}", response_model=List[MenuItemResponse])
async def search_menu(
    query: str,
    db: AsyncSession = Depends(get_db),
) -> List[MenuItemResponse]:
    """Case-insensitive match anywhere in the item name."""
    result = await db.execute(
        _available_items()
        .where(MenuItem.name.icontains(query, autoescape=True))
        .limit(MAX_SEARCH_RESULTS)
    )
    return [MenuItemResponse.model_validate(item) for item in result.scalars().all()]


@router.get("/{item_id}", response_model=MenuItemResponse)
async def get_menu_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    item = await _load_menu_item(db, item_id)
    return MenuItemResponse.model_validate(item)


@router.post("", response_model=MenuItemResponse, status_code=201)
async def create_menu_item(
    payload: MenuItemCreate,
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    await _ensure_restaurant(db, payload.restaurant_id)

    item = MenuItem(**payload.model_dump())
    db.add(item)
    await db.commit()

    logger.info(f"Menu item {item.name} added to restaurant {item.restaurant_id}")
    item = await _load_menu_item(db, item.id, reload=True)
    return MenuItemResponse.model_validate(item)


@router.put("/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    item_id: str,
    payload: MenuItemUpdate,
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    """Update the supplied fields only."""
    item = await _load_menu_item(db, item_id)
    values = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None
    }
    if "restaurant_id" in values:
        await _ensure_restaurant(db, values["restaurant_id"])

    for key, value in values.items():
        setattr(item, key, value)
    await db.commit()

    item = await _load_menu_item(db, item_id, reload=True)
    return MenuItemResponse.model_validate(item)


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_menu_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    item = await _load_menu_item(db, item_id)
    await db.delete(item)
    await db.commit()
    return MessageResponse(message="Menu item deleted successfully")
