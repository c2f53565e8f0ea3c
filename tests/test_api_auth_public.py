from travelbook.core.security import create_refresh_token


def test_register_login_and_me(client):
    r = client.post("/api/v1/auth/register", json={
        "email": "Rina@Example.com", "password": "rahasia123", "full_name": "Rina",
    })
    assert r.status_code == 201
    assert r.json()["token_type"] == "bearer"

    assert client.post("/api/v1/auth/register", json={
        "email": "rina@example.com", "password": "rahasia123",
    }).status_code == 409

    r = client.post("/api/v1/auth/login", json={"email": "rina@example.com", "password": "rahasia123"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["email"] == "rina@example.com"
    assert me["role"] == "user"


def test_login_with_wrong_password(client, customer):
    r = client.post("/api/v1/auth/login", json={"email": "budi@example.com", "password": "salah"})
    assert r.status_code == 401


def test_refresh_token_is_not_an_access_token(client, customer):
    token = create_refresh_token(customer.id)
    r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401

    r = client.post("/api/v1/auth/refresh", params={"refresh_token": token})
    assert r.status_code == 200
    assert r.json()["access_token"]


def test_public_catalog(client, db, trip, travel):
    trips = client.get("/api/v1/trips").json()["data"]
    assert [t["id"] for t in trips] == [trip.id]
    assert client.get(f"/api/v1/trips/{trip.id}").json()["data"]["price"] == 1000000.0

    travels = client.get("/api/v1/travels", params={"origin": "malang"}).json()["data"]
    assert [t["id"] for t in travels] == [travel.id]
    assert client.get("/api/v1/travels", params={"origin": "Jakarta"}).json()["data"] == []

    trip.is_active = False
    db.commit()
    assert client.get(f"/api/v1/trips/{trip.id}").status_code == 404
    assert client.get("/api/v1/trips").json()["data"] == []


def test_token_issued_before_role_change_is_refused(client, db, customer, auth_headers):
    headers = auth_headers(customer)
    assert client.get("/api/v1/auth/me", headers=headers).status_code == 200

    customer.role = "admin"
    db.commit()

    assert client.get("/api/v1/auth/me", headers=headers).status_code == 401
    assert client.get("/api/v1/admin/bookings", headers=headers).status_code == 401
    assert client.get("/api/v1/admin/bookings", headers=auth_headers(customer)).status_code == 200
