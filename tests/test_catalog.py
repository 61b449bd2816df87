from conftest import auth_headers

from app.models import Service, UserRole


def test_categories_are_public_and_hide_inactive_services(client, db, service):
    db.add(Service(category_id=service.category_id, name="Old towing", base_price=10, is_active=False))
    db.commit()

    response = client.get("/services/categories")
    assert response.status_code == 200
    categories = response.json()
    assert len(categories) == 1
    assert categories[0]["name"] == "Roadside"
    assert [s["name"] for s in categories[0]["services"]] == ["Battery jump start"]
    assert categories[0]["services"][0]["basePrice"] == 50.0


def test_admin_creates_category_and_service(client, make_user):
    admin = make_user(UserRole.ADMIN.value)
    headers = auth_headers(admin)

    category = client.post("/services/categories", json={"name": "Tyres"}, headers=headers)
    assert category.status_code == 201

    duplicate = client.post("/services/categories", json={"name": "Tyres"}, headers=headers)
    assert duplicate.status_code == 409

    service = client.post(
        "/services",
        json={"categoryId": category.json()["id"], "name": "Flat tyre", "basePrice": 30},
        headers=headers,
    )
    assert service.status_code == 201
    assert service.json()["basePrice"] == 30

    missing = client.post(
        "/services", json={"categoryId": 999, "name": "Ghost", "basePrice": 1}, headers=headers
    )
    assert missing.status_code == 404


def test_customer_cannot_create_category(client, customer):
    response = client.post("/services/categories", json={"name": "Tyres"}, headers=auth_headers(customer))
    assert response.status_code == 403


def test_provider_declares_services(client, make_user, service):
    provider = make_user(UserRole.PROVIDER.value)
    headers = auth_headers(provider)

    response = client.put("/services/mine", json={"serviceIds": [service.id]}, headers=headers)
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [service.id]

    cleared = client.put("/services/mine", json={"serviceIds": []}, headers=headers)
    assert cleared.status_code == 200
    assert cleared.json() == []

    again = client.put("/services/mine", json={"serviceIds": [service.id]}, headers=headers)
    assert [s["id"] for s in again.json()] == [service.id]
    assert [s["id"] for s in client.get("/services/mine", headers=headers).json()] == [service.id]


def test_provider_cannot_declare_unknown_service(client, make_user):
    provider = make_user(UserRole.PROVIDER.value)
    response = client.put("/services/mine", json={"serviceIds": [12345]}, headers=auth_headers(provider))
    assert response.status_code == 404
