"""
User Profile API Endpoints

Profiles are addressed by Firebase UID. Identity is verified by Firebase on
the client; this API only stores profile data and saved addresses.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError
from app.database import get_db
from app.models import Order, User, new_id, utcnow
from app.schemas import (
    AddressUpsert,
    MessageResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

DEFAULT_PAYMENT_METHOD = "Cash on Delivery"


def format_address(address: dict) -> str:
    """One-line form of a saved address, skipping blank parts."""
    parts = [
        address.get("street"),
        address.get("city"),
        address.get("state"),
        address.get("postalCode"),
    ]
    return ", ".join(part for part in parts if part)


async def _get_user(db: AsyncSession, firebase_uid: str) -> User:
    result = await db.execute(select(User).where(User.firebase_uid == firebase_uid))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def _ensure_email_free(db: AsyncSession, email: Optional[str], owner_id: Optional[str] = None) -> None:
    if not email:
        return
    result = await db.execute(select(User.id).where(User.email == email))
    existing = result.scalar_one_or_none()
    if existing is not None and existing != owner_id:
        raise ConflictError(["email"])


@router.get("/firebase/{firebase_uid}", response_model=UserResponse)
async def get_user_by_firebase_uid(
    firebase_uid: str,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await _get_user(db, firebase_uid)
    return UserResponse.model_validate(user)


@router.get("/{firebase_uid}", response_model=UserResponse)
async def get_user(
    firebase_uid: str,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Get a profile.

    A user with saved addresses but no default gets the first one
    promoted to default on read.
    """
    user = await _get_user(db, firebase_uid)
    if not user.default_address and user.addresses:
        user.default_address = format_address(user.addresses[0])
        await db.commit()
        await db.refresh(user)
    return UserResponse.model_validate(user)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    existing = await db.execute(select(User.id).where(User.firebase_uid == payload.firebase_uid))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(["firebaseUid"])
    await _ensure_email_free(db, payload.email)

    addresses = [
        {**address.model_dump(by_alias=True, exclude_none=True), "id": new_id()}
        for address in payload.addresses
    ]
    user = User(
        **payload.model_dump(exclude={"addresses"}),
        addresses=addresses,
        preferred_payment_method=DEFAULT_PAYMENT_METHOD,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"User {user.firebase_uid} created")
    return UserResponse.model_validate(user)


@router.patch("/{firebase_uid}", response_model=UserResponse)
async def update_user(
    firebase_uid: str,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Update the supplied profile fields."""
    user = await _get_user(db, firebase_uid)
    values = payload.model_dump(exclude_unset=True)
    if "email" in values:
        await _ensure_email_free(db, values["email"], owner_id=user.id)

    for key, value in values.items():
        setattr(user, key, value)
    user.updated_at = utcnow()
    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)


@router.delete("/{firebase_uid}", response_model=MessageResponse)
async def delete_user(
    firebase_uid: str,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a profile and every order placed under it."""
    user = await _get_user(db, firebase_uid)
    result = await db.execute(delete(Order).where(Order.user_firebase_uid == firebase_uid))
    await db.delete(user)
    await db.commit()

    logger.info(f"User {firebase_uid} deleted with {result.rowcount} orders")
    return MessageResponse(message="User and all associated data deleted successfully")


@router.patch("/{firebase_uid}/address", response_model=UserResponse)
async def upsert_address(
    firebase_uid: str,
    payload: AddressUpsert,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Add a saved address, or edit the one named by ``addressId``.

    An address flagged ``isDefault`` becomes the only default and is copied
    into ``defaultAddress`` and ``deliveryAddress``.
    """
    user = await _get_user(db, firebase_uid)
    addresses = [dict(address) for address in user.addresses or []]
    changes = payload.address.model_dump(by_alias=True, exclude_unset=True, exclude={"id"})

    if payload.address_id:
        index = next(
            (i for i, address in enumerate(addresses) if address.get("id") == payload.address_id),
            None,
        )
        if index is None:
            raise NotFoundError("Address not found")
        target = {**addresses[index], **changes}
        addresses[index] = target
    else:
        target = {
            **payload.address.model_dump(by_alias=True, exclude_none=True, exclude={"id"}),
            "id": new_id(),
        }
        addresses.append(target)

    if payload.address.is_default:
        addresses = [
            {**address, "isDefault": address["id"] == target["id"]}
            for address in addresses
        ]
        line = format_address(target)
        user.default_address = line
        user.delivery_address = line

    user.addresses = addresses
    user.updated_at = utcnow()
    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)


@router.delete("/{firebase_uid}/address/{address_id}", response_model=UserResponse)
async def delete_address(
    firebase_uid: str,
    address_id: str,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Remove a saved address.

    If it was the default, the first remaining address takes over; with
    none left the default and delivery addresses are cleared.
    """
    user = await _get_user(db, firebase_uid)
    addresses = [dict(address) for address in user.addresses or []]
    removed = next((a for a in addresses if a.get("id") == address_id), None)
    addresses = [a for a in addresses if a.get("id") != address_id]

    if removed and removed.get("isDefault") and addresses:
        addresses = [{**address, "isDefault": i == 0} for i, address in enumerate(addresses)]
        line = format_address(addresses[0])
        user.default_address = line
        user.delivery_address = line
    if not addresses:
        user.default_address = ""
        user.delivery_address = ""

    user.addresses = addresses
    user.updated_at = utcnow()
    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)
