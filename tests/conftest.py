from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.shop.models import Category, Product
from apps.users.authentication import make_token


@pytest.fixture
def user():
    return get_user_model().objects.create_user("u@test.com", "pw", first_name="Kim", last_name="Min")


@pytest.fixture
def other_user():
    return get_user_model().objects.create_user("v@test.com", "pw2", first_name="Lee", last_name="Jun")


@pytest.fixture
def make_product():
    def _make(stock=10, price="5.00", name="Product", category=Category.ELECTRONICS):
        return Product.objects.create(name=name, category=category, price=Decimal(price), stock=stock)
    return _make


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(user):
    client = APIClient()
    client.cookies["token"] = make_token(user)
    return client
