import pytest

from app.routes.users import format_address

HOME = {
    "label": "Home",
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "postalCode": "560001",
}
WORK = {
    "label": "Work",
    "street": "80 Outer Ring Rd",
    "city": "Bengaluru",
    "state": "KA",
    "postalCode": "560103",
}


@pytest.fixture
def create_user(client):
    async def create(**overrides) -> dict:
        payload = {"firebaseUid": "firebase-1", "name": "Asha", "email": "Asha@Example.com"}
        payload.update(overrides)
        response = await client.post("/api/users", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return create


def test_format_address_skips_blank_parts():
    assert format_address(HOME) == "12 MG Road, Bengaluru, KA, 560001"
    assert format_address({"street": "12 MG Road", "city": "", "state": "KA"}) == "12 MG Road, KA"


async def test_create_user(create_user):
    user = await create_user(addresses=[HOME])

    assert user["firebaseUid"] == "firebase-1"
    assert user["email"] == "asha@example.com"
    assert user["preferredPaymentMethod"] == "Cash on Delivery"
    assert user["addresses"][0]["id"]
    assert user["addresses"][0]["street"] == "12 MG Road"


async def test_create_user_with_taken_firebase_uid(client, create_user):
    await create_user()

    response = await client.post("/api/users", json={"firebaseUid": "firebase-1"})

    assert response.status_code == 400
    assert response.json() == {
        "message": "Duplicate field value entered",
        "errors": ["firebaseUid already exists"],
    }


async def test_create_user_with_taken_email(client, create_user):
    await create_user()

    response = await client.post(
        "/api/users",
        json={"firebaseUid": "firebase-2", "email": "asha@example.com"},
    )

    assert response.status_code == 400
    assert response.json()["errors"] == ["email already exists"]


async def test_create_user_with_bad_email(client):
    response = await client.post("/api/users", json={"firebaseUid": "f", "email": "not-an-email"})

    assert response.status_code == 400
    assert response.json()["errors"] == ["email: Invalid email format"]


async def test_get_user_promotes_first_address_to_default(client, create_user):
    await create_user(addresses=[HOME, WORK])

    response = await client.get("/api/users/firebase-1")

    assert response.status_code == 200
    assert response.json()["defaultAddress"] == "12 MG Road, Bengaluru, KA, 560001"


async def test_get_user_by_firebase_route(client, create_user):
    await create_user()

    response = await client.get("/api/users/firebase/firebase-1")
    assert response.json()["name"] == "Asha"


async def test_get_missing_user(client):
    response = await client.get("/api/users/nobody")

    assert response.status_code == 404
    assert response.json() == {"message": "User not found"}


async def test_update_profile(client, create_user):
    await create_user()

    response = await client.patch(
        "/api/users/firebase-1",
        json={"phone": "+91 98450 00000", "preferredPaymentMethod": "UPI"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["phone"] == "+91 98450 00000"
    assert body["preferredPaymentMethod"] == "UPI"
    assert body["name"] == "Asha"
    assert body["updatedAt"]


async def test_update_profile_to_taken_email(client, create_user):
    await create_user()
    await create_user(firebaseUid="firebase-2", email="ravi@example.com")

    response = await client.patch("/api/users/firebase-2", json={"email": "asha@example.com"})
    assert response.status_code == 400

    # Keeping your own email is fine
    response = await client.patch("/api/users/firebase-1", json={"email": "asha@example.com"})
    assert response.status_code == 200


async def test_add_default_address(client, create_user):
    await create_user(addresses=[HOME])

    response = await client.patch(
        "/api/users/firebase-1/address",
        json={"address": {**WORK, "isDefault": True}},
    )

    assert response.status_code == 200
    body = response.json()
    assert [a["isDefault"] for a in body["addresses"]] == [False, True]
    assert body["defaultAddress"] == "80 Outer Ring Rd, Bengaluru, KA, 560103"
    assert body["deliveryAddress"] == body["defaultAddress"]


async def test_edit_address_by_id(client, create_user):
    user = await create_user(addresses=[HOME])
    address_id = user["addresses"][0]["id"]

    response = await client.patch(
        "/api/users/firebase-1/address",
        json={"addressId": address_id, "address": {"street": "14 MG Road"}},
    )

    assert response.status_code == 200
    addresses = response.json()["addresses"]
    assert len(addresses) == 1
    assert addresses[0]["id"] == address_id
    assert addresses[0]["street"] == "14 MG Road"
    assert addresses[0]["city"] == "Bengaluru"


async def test_edit_unknown_address(client, create_user):
    await create_user(addresses=[HOME])

    response = await client.patch(
        "/api/users/firebase-1/address",
        json={"addressId": "nope", "address": {"street": "14 MG Road"}},
    )

    assert response.status_code == 404
    assert response.json() == {"message": "Address not found"}


async def test_deleting_default_address_promotes_next(client, create_user):
    user = await create_user(addresses=[{**HOME, "isDefault": True}, WORK])
    home_id = user["addresses"][0]["id"]

    response = await client.delete(f"/api/users/firebase-1/address/{home_id}")

    body = response.json()
    assert [a["label"] for a in body["addresses"]] == ["Work"]
    assert body["addresses"][0]["isDefault"] is True
    assert body["defaultAddress"] == "80 Outer Ring Rd, Bengaluru, KA, 560103"


async def test_deleting_last_address_clears_defaults(client, create_user):
    user = await create_user(addresses=[{**HOME, "isDefault": True}])

    response = await client.delete(f"/api/users/firebase-1/address/{user['addresses'][0]['id']}")

    body = response.json()
    assert body["addresses"] == []
    assert body["defaultAddress"] == ""
    assert body["deliveryAddress"] == ""


async def test_delete_user_removes_their_orders(client, create_user, create_order):
    await create_user()
    mine = await create_order()
    theirs = await create_order(userId="user-2", userFirebaseUid="firebase-2")

    response = await client.delete("/api/users/firebase-1")

    assert response.status_code == 200
    assert response.json() == {"message": "User and all associated data deleted successfully"}
    assert (await client.get("/api/users/firebase-1")).status_code == 404
    assert (await client.get(f"/api/orders/{mine['id']}")).status_code == 404
    assert (await client.get(f"/api/orders/{theirs['id']}")).status_code == 200


async def test_delete_missing_user_keeps_orders(client, create_order):
    order = await create_order()

    response = await client.delete("/api/users/firebase-1")

    assert response.status_code == 404
    assert (await client.get(f"/api/orders/{order['id']}")).status_code == 200
