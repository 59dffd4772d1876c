from datetime import datetime, timedelta, timezone


def future(days=30):
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def past(days=1):
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def test_create_fixed_coupon(client):
    """Test creating a fixed-amount coupon"""
    coupon_data = {
        "code": "save20",
        "discount_type": "fixed",
        "discount_value": 20,
        "end_date": future(),
    }

    response = client.post("/coupons", json=coupon_data)
    assert response.status_code == 201
    data = response.json()
    assert data["code"] == "SAVE20"
    assert data["discount_type"] == "fixed"
    assert data["discount_value"] == 20
    assert data["used_count"] == 0
    assert data["max_uses"] is None
    assert data["max_uses_per_user"] == 1


def test_create_percentage_coupon(client):
    """Test creating a percentage coupon with a minimum purchase"""
    coupon_data = {
        "code": "WELCOME10",
        "discount_type": "percentage",
        "discount_value": 10,
        "min_purchase_amount": 50,
        "max_uses": 100,
        "end_date": future(),
    }

    response = client.post("/coupons", json=coupon_data)
    assert response.status_code == 201
    data = response.json()
    assert data["min_purchase_amount"] == 50
    assert data["max_uses"] == 100


def test_duplicate_code_rejected(client):
    coupon_data = {"code": "DUP1", "discount_type": "fixed", "discount_value": 5, "end_date": future()}
    assert client.post("/coupons", json=coupon_data).status_code == 201

    coupon_data["code"] = "dup1"
    response = client.post("/coupons", json=coupon_data)
    assert response.status_code == 409
    assert response.json()["error"]["detail"] == "Coupon code already exists"


def test_invalid_coupon_payloads(client):
    """Unknown discount type, negative value and bad codes fail validation"""
    base = {"code": "OK123", "discount_type": "fixed", "discount_value": 5, "end_date": future()}

    assert client.post("/coupons", json={**base, "discount_type": "bogo"}).status_code == 422
    assert client.post("/coupons", json={**base, "discount_value": -1}).status_code == 422
    assert client.post("/coupons", json={**base, "code": "NO-DASH"}).status_code == 422
    assert client.post("/coupons", json={**base, "code": "AB"}).status_code == 422


def test_get_coupons(client):
    """Test getting all coupons"""
    client.post("/coupons", json={"code": "A1B2", "discount_type": "fixed", "discount_value": 5, "end_date": future()})

    response = client.get("/coupons")
    assert response.status_code == 200
    data = response.json()
    assert isinstance(data, list)
    assert len(data) >= 1


def test_update_and_delete_coupon(client):
    created = client.post(
        "/coupons", json={"code": "EDITME", "discount_type": "fixed", "discount_value": 5, "end_date": future()}
    ).json()

    response = client.put(f"/coupons/{created['id']}", json={"is_active": False, "discount_value": 7.5})
    assert response.status_code == 200
    data = response.json()
    assert data["is_active"] is False
    assert data["discount_value"] == 7.5

    assert client.delete(f"/coupons/{created['id']}").status_code == 204
    assert client.get(f"/coupons/{created['id']}").status_code == 404


def test_validate_coupon(client):
    client.post(
        "/coupons",
        json={
            "code": "WELCOME10",
            "discount_type": "percentage",
            "discount_value": 10,
            "min_purchase_amount": 50,
            "end_date": future(),
        },
    )

    response = client.post("/coupons/validate", json={"code": "welcome10", "items_price": 80})
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is True
    assert data["code"] == "WELCOME10"
    assert data["discount"] == 8.0

    response = client.post("/coupons/validate", json={"code": "WELCOME10", "items_price": 40})
    data = response.json()
    assert data["valid"] is False
    assert data["message"] == "Minimum purchase of $50 required"


def test_validate_expired_and_unknown(client):
    client.post(
        "/coupons",
        json={
            "code": "OLD5",
            "discount_type": "fixed",
            "discount_value": 5,
            "start_date": past(10),
            "end_date": past(1),
        },
    )
    data = client.post("/coupons/validate", json={"code": "OLD5", "items_price": 80}).json()
    assert data == {"valid": False, "message": "Coupon has expired", "code": None, "discount": 0.0}

    data = client.post("/coupons/validate", json={"code": "MISSING", "items_price": 80}).json()
    assert data["message"] == "Invalid coupon code"


def test_coupon_not_found(client):
    """Test getting non-existent coupon"""
    response = client.get("/coupons/999999")
    assert response.status_code == 404
    assert response.json() == {"error": {"status_code": 404, "detail": "Coupon not found"}}


def test_health_endpoint(client):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"


def test_percentage_discount_capped_at_100(client):
    base = {"code": "HALF", "discount_type": "percentage", "discount_value": 50, "end_date": future()}

    assert client.post("/coupons", json={**base, "discount_value": 150}).status_code == 422
    assert client.post("/coupons", json={**base, "code": "FREEBIE", "discount_value": 100}).status_code == 201
    big_fixed = {**base, "code": "BIGFIXED", "discount_type": "fixed", "discount_value": 150}
    assert client.post("/coupons", json=big_fixed).status_code == 201

    created = client.post("/coupons", json=base).json()
    response = client.put(f"/coupons/{created['id']}", json={"discount_value": 150})
    assert response.status_code == 400
    assert response.json()["error"]["detail"] == "Percentage discount cannot exceed 100"

    fixed = client.get("/coupons").json()
    big = next(c for c in fixed if c["code"] == "BIGFIXED")
    response = client.put(f"/coupons/{big['id']}", json={"discount_type": "percentage"})
    assert response.status_code == 400


def test_update_can_clear_usage_cap(client):
    """Sending null for max_uses makes the coupon unlimited again"""
    created = client.post(
        "/coupons",
        json={"code": "CAPPED", "discount_type": "fixed", "discount_value": 5, "max_uses": 3,
              "description": "Three only", "end_date": future()},
    ).json()
    assert created["max_uses"] == 3

    response = client.put(f"/coupons/{created['id']}", json={"max_uses": None, "description": None})
    assert response.status_code == 200
    data = response.json()
    assert data["max_uses"] is None
    assert data["description"] is None

    response = client.put(f"/coupons/{created['id']}", json={"discount_value": None, "is_active": None})
    assert response.status_code == 200
    assert response.json()["discount_value"] == 5
    assert response.json()["is_active"] is True
