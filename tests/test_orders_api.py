import uuid

import pytest

from apps.shop import services
from apps.shop.models import IdempotencyKey, Order

pytestmark = pytest.mark.django_db(transaction=True)


def _body(*lines):
    return {"orderItems": [
        {"productId": str(p.pk), "quantity": q, **({"unitPrice": price} if price else {})}
        for p, q, price in lines
    ]}


def test_create_order(auth_client, user, make_product):
    p = make_product(stock=10, price="5.00")

    res = auth_client.post("/orders", _body((p, 3, "5.00")), format="json")

    assert res.status_code == 201
    data = res.json()
    assert data["userId"] == str(user.pk)
    assert data["total"] == "15.00"
    assert data["status"] == "PENDING"
    assert data["orderItems"][0]["productId"] == str(p.pk)
    assert data["orderItems"][0]["quantity"] == 3
    assert data["orderItems"][0]["unitPrice"] == "5.00"
    assert res["Location"] == f"/orders/{data['id']}"
    p.refresh_from_db()
    assert p.stock == 7


def test_create_order_requires_login(api_client, make_product):
    p = make_product(stock=10)
    res = api_client.post("/orders", _body((p, 1, None)), format="json")
    assert res.status_code == 401
    assert Order.objects.count() == 0


def test_insufficient_stock_maps_to_409(auth_client, make_product):
    p = make_product(stock=1)

    res = auth_client.post("/orders", _body((p, 2, None)), format="json")

    assert res.status_code == 409
    data = res.json()
    assert data["code"] == "insufficient_stock"
    assert data["shortages"] == {str(p.pk): {"available": 1, "requested": 2}}
    p.refresh_from_db()
    assert p.stock == 1


def test_unknown_product_maps_to_404(auth_client):
    res = auth_client.post("/orders", {"orderItems": [{"productId": str(uuid.uuid4()), "quantity": 1}]},
                           format="json")
    assert res.status_code == 404
    assert res.json()["code"] == "not_found"


@pytest.mark.parametrize("body", [
    {"orderItems": []},
    {},
    {"orderItems": [{"productId": "nope", "quantity": 1}]},
    {"orderItems": [{"productId": str(uuid.uuid4()), "quantity": 0}]},
])
def test_malformed_request_is_400(auth_client, body):
    res = auth_client.post("/orders", body, format="json")
    assert res.status_code == 400


def test_idempotency_key_replays_response(auth_client, make_product):
    p = make_product(stock=10)
    body = _body((p, 2, "5.00"))

    first = auth_client.post("/orders", body, format="json", HTTP_IDEMPOTENCY_KEY="abc-1")
    second = auth_client.post("/orders", body, format="json", HTTP_IDEMPOTENCY_KEY="abc-1")

    assert first.status_code == second.status_code == 201
    assert first.json() == second.json()
    assert Order.objects.count() == 1
    assert IdempotencyKey.objects.count() == 1
    p.refresh_from_db()
    assert p.stock == 8


def test_idempotency_key_reuse_with_other_body(auth_client, make_product):
    p = make_product(stock=10)
    auth_client.post("/orders", _body((p, 2, None)), format="json", HTTP_IDEMPOTENCY_KEY="abc-2")

    res = auth_client.post("/orders", _body((p, 3, None)), format="json", HTTP_IDEMPOTENCY_KEY="abc-2")

    assert res.status_code == 400
    p.refresh_from_db()
    assert p.stock == 8


def test_failed_order_does_not_store_idempotency_key(auth_client, make_product):
    p = make_product(stock=1)
    res = auth_client.post("/orders", _body((p, 5, None)), format="json", HTTP_IDEMPOTENCY_KEY="abc-3")
    assert res.status_code == 409
    assert IdempotencyKey.objects.count() == 0


def test_order_detail_has_total(auth_client, api_client, make_product):
    a = make_product(stock=10, price="2.00")
    b = make_product(stock=10, price="3.00")
    created = auth_client.post("/orders", _body((a, 2, "2.00"), (b, 1, "3.00")), format="json").json()

    res = api_client.get(f"/orders/{created['id']}")

    assert res.status_code == 200
    assert res.json()["total"] == "7.00"
    assert len(res.json()["orderItems"]) == 2


def test_order_detail_unknown(api_client):
    res = api_client.get(f"/orders/{uuid.uuid4()}")
    assert res.status_code == 404


def test_order_lists(auth_client, api_client, user, make_product):
    p = make_product(stock=10)
    created = auth_client.post("/orders", _body((p, 1, None)), format="json").json()

    assert [o["id"] for o in api_client.get("/orders").json()] == [created["id"]]
    assert [o["id"] for o in api_client.get(f"/users/{user.pk}/orders").json()] == [created["id"]]
    assert api_client.get(f"/users/{uuid.uuid4()}/orders").status_code == 404


def test_product_listing(api_client, make_product):
    cheap = make_product(price="1.00", name="Blue mug")
    pricey = make_product(price="9.00", name="Red mug")
    make_product(price="5.00", name="Sneaker", category="SPORTS")

    res = api_client.get("/products", {"order": "priceHighest", "search": "MUG"})
    assert [x["id"] for x in res.json()] == [str(pricey.pk), str(cheap.pk)]

    res = api_client.get("/products", {"category": "SPORTS"})
    assert [x["name"] for x in res.json()] == ["Sneaker"]

    res = api_client.get("/products", {"order": "priceLowest", "offset": 1, "limit": 1})
    assert [x["name"] for x in res.json()] == ["Sneaker"]

    assert api_client.get("/products", {"limit": "ten"}).status_code == 400


def test_product_detail(api_client, make_product):
    p = make_product(stock=3)
    res = api_client.get(f"/products/{p.pk}")
    assert res.status_code == 200
    assert res.json()["stock"] == 3
    assert api_client.get(f"/products/{uuid.uuid4()}").status_code == 404


def test_conflict_is_retried_by_endpoint(auth_client, other_user, make_product, monkeypatch):
    p = make_product(stock=10)
    real_check = services._check_stock
    raced = []

    def check_then_race(products, requested):
        real_check(products, requested)
        if not raced:
            raced.append(True)
            services.place_order(user_id=other_user.pk, items=[{"product_id": p.pk, "quantity": 6}])

    monkeypatch.setattr(services, "_check_stock", check_then_race)

    res = auth_client.post("/orders", _body((p, 3, None)), format="json")

    assert res.status_code == 201
    p.refresh_from_db()
    assert p.stock == 1
    assert Order.objects.count() == 2


def test_unknown_product_detail_uses_error_shape(api_client):
    res = api_client.get(f"/products/{uuid.uuid4()}")
    assert res.status_code == 404
    assert res.json()["code"] == "not_found"


def test_patch_order_status(auth_client, api_client, make_product):
    p = make_product(stock=10)
    created = auth_client.post("/orders", _body((p, 1, None)), format="json").json()

    res = auth_client.patch(f"/orders/{created['id']}", {"status": "COMPLETE"}, format="json")
    assert res.status_code == 200
    assert res.json()["status"] == "COMPLETE"
    assert res.json()["total"] == created["total"]

    assert auth_client.patch(f"/orders/{created['id']}", {"status": "SHIPPED"}, format="json").status_code == 400
    assert api_client.patch(f"/orders/{created['id']}", {"status": "PENDING"}, format="json").status_code == 401
    assert auth_client.patch(f"/orders/{uuid.uuid4()}", {"status": "COMPLETE"}, format="json").status_code == 404
