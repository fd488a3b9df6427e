import uuid

import pytest
from django.core import signing

from apps.users.authentication import TOKEN_SALT, make_token

pytestmark = pytest.mark.django_db(transaction=True)


def test_login_sets_cookie_and_me_works(api_client, user):
    res = api_client.post("/auth/login", {"email": "u@test.com", "password": "pw"}, format="json")

    assert res.status_code == 200
    assert res.cookies["token"]["httponly"]
    me = api_client.get("/users/me")
    assert me.status_code == 200
    assert me.json()["email"] == "u@test.com"
    assert me.json()["userPreference"] == {"receiveEmail": False}


def test_login_wrong_password(api_client, user):
    res = api_client.post("/auth/login", {"email": "u@test.com", "password": "nope"}, format="json")
    assert res.status_code == 401
    assert "token" not in res.cookies


def test_logout_clears_cookie(auth_client):
    res = auth_client.post("/auth/logout")
    assert res.status_code == 200
    assert res.cookies["token"].value == ""
    assert auth_client.get("/users/me").status_code == 401


def test_me_without_cookie(api_client):
    assert api_client.get("/users/me").status_code == 401


def test_tampered_token(api_client, user):
    api_client.cookies["token"] = make_token(user) + "x"
    assert api_client.get("/users/me").status_code == 401


def test_token_for_unknown_user(api_client):
    api_client.cookies["token"] = signing.dumps({"uid": str(uuid.uuid4()), "h": ""}, salt=TOKEN_SALT)
    assert api_client.get("/users/me").status_code == 401


def test_password_change_invalidates_token(auth_client, user):
    user.set_password("new-pw")
    user.save()
    assert auth_client.get("/users/me").status_code == 401


def test_saved_products_toggle(auth_client, make_product):
    p = make_product()

    res = auth_client.post("/users/me/saved-products", {"productId": str(p.pk)}, format="json")
    assert res.status_code == 201
    assert [x["id"] for x in res.json()] == [str(p.pk)]
    assert [x["id"] for x in auth_client.get("/users/me/saved-products").json()] == [str(p.pk)]

    res = auth_client.post("/users/me/saved-products", {"productId": str(p.pk)}, format="json")
    assert res.status_code == 200
    assert res.json() == []


def test_saved_products_unknown_product(auth_client):
    res = auth_client.post("/users/me/saved-products", {"productId": str(uuid.uuid4())}, format="json")
    assert res.status_code == 404
