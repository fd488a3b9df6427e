import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

from .models_idem import IdempotencyKey  # noqa: F401


class Category(models.TextChoices):
    FASHION = "FASHION"
    BEAUTY = "BEAUTY"
    SPORTS = "SPORTS"
    ELECTRONICS = "ELECTRONICS"
    HOME_INTERIOR = "HOME_INTERIOR"
    HOUSEHOLD_SUPPLIES = "HOUSEHOLD_SUPPLIES"
    KITCHENWARE = "KITCHENWARE"


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=32, choices=Category.choices)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    stock = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


class OrderStatus(models.TextChoices):
    PENDING = "PENDING"
    COMPLETE = "COMPLETE"


class Order(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders")
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    @property
    def total(self) -> Decimal:
        """Sum of unit_price * quantity over the items; never stored."""
        return sum((item.unit_price * item.quantity for item in self.items.all()), Decimal("0.00"))


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="order_items")
    quantity = models.PositiveIntegerField()
    # copied at order time so later price changes don't rewrite history
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
