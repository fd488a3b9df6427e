import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .exceptions import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from .models import Order, OrderItem, Product
from .signals import order_placed

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
MAX_PRICE_DIGITS = 12


@dataclass(frozen=True)
class LineItem:
    product_id: uuid.UUID
    quantity: int
    unit_price: Optional[Decimal] = None


def _as_uuid(value, field):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"{field} is not a valid id: {value!r}")


def _as_price(value):
    if value is None:
        return None
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"unit_price is not a number: {value!r}")
    if not price.is_finite() or price < 0:
        raise ValidationError(f"unit_price must be >= 0: {value!r}")
    # same bounds as OrderItem.unit_price: max_digits=12, decimal_places=2
    if price and price.adjusted() >= MAX_PRICE_DIGITS - 2:
        raise ValidationError(f"unit_price is too large: {value!r}")
    try:
        cents = price.quantize(CENT)
    except InvalidOperation:
        raise ValidationError(f"unit_price is not a valid amount: {value!r}")
    if price != cents:
        raise ValidationError(f"unit_price has more than 2 decimal places: {value!r}")
    return cents


def _normalize_items(items) -> list[LineItem]:
    """items = [{'product_id': ..., 'quantity': 2, 'unit_price': '5.00'}, ...]"""
    if not isinstance(items, (list, tuple)):
        raise ValidationError("items must be a list of line items.")
    if not items:
        raise ValidationError("At least one item is required.")
    lines = []
    for it in items:
        if not isinstance(it, Mapping):
            raise ValidationError(f"line item must be an object: {it!r}")
        qty = it.get("quantity")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError(f"quantity must be a positive integer: {qty!r}")
        lines.append(LineItem(
            product_id=_as_uuid(it.get("product_id"), "product_id"),
            quantity=qty,
            unit_price=_as_price(it.get("unit_price")),
        ))
    return lines


def _requested_totals(lines) -> dict[uuid.UUID, int]:
    # a product may appear on several lines; stock is checked and decremented per product
    totals = {}
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return totals


def _check_stock(products, requested) -> None:
    missing = [str(pid) for pid in requested if pid not in products]
    if missing:
        raise NotFoundError(f"Unknown product: {', '.join(missing)}")

    shortages = {
        pid: (products[pid].stock, qty)
        for pid, qty in requested.items()
        if products[pid].stock < qty
    }
    if shortages:
        raise InsufficientStockError(shortages)


def _commit(user, lines, products, requested) -> Order:
    with transaction.atomic():
        order = Order.objects.create(user=user)
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price if line.unit_price is not None else products[line.product_id].price,
            )
            for line in lines
        ])

        # fixed order keeps concurrent placements from deadlocking on row locks
        now = timezone.now()
        for pid in sorted(requested, key=str):
            qty = requested[pid]
            updated = (Product.objects
                       .filter(pk=pid, stock__gte=qty)
                       .update(stock=F("stock") - qty, updated_at=now))
            if updated != 1:
                # someone else took the stock after our snapshot; roll back everything
                raise ConflictError(f"Stock for product {pid} changed during checkout")

        transaction.on_commit(lambda: order_placed.send(sender=Order, order=order))
    return order


def place_order(*, user_id, items) -> Order:
    """Create an order for ``user_id`` and take its items out of stock.

    Stock is validated against one snapshot read up front. The writes then run
    in a single atomic block where every decrement is conditional on the stock
    still covering the requested amount, so a concurrent placement that got
    there first makes this one fail with ConflictError instead of overselling.
    Nothing is written when any check fails.
    """
    user_pk = _as_uuid(user_id, "user_id")
    lines = _normalize_items(items)
    requested = _requested_totals(lines)

    user = get_user_model().objects.filter(pk=user_pk).first()
    if user is None:
        raise NotFoundError(f"Unknown user: {user_pk}")

    logger.info(f"placing order: user={user_pk} lines={len(lines)} products={len(requested)}")
    products = Product.objects.in_bulk(list(requested))
    try:
        _check_stock(products, requested)
        order = _commit(user, lines, products, requested)
    except (NotFoundError, InsufficientStockError, ConflictError) as e:
        logger.warning(f"order rejected: user={user_pk} {e.code}: {e}")
        raise

    logger.info(f"order committed: {order.id}")
    return get_order(order.id)


def get_order(order_id) -> Order:
    order = (Order.objects
             .prefetch_related("items")
             .filter(pk=_as_uuid(order_id, "order_id"))
             .first())
    if order is None:
        raise NotFoundError(f"Unknown order: {order_id}")
    return order


def list_user_orders(user_id):
    user_pk = _as_uuid(user_id, "user_id")
    if not get_user_model().objects.filter(pk=user_pk).exists():
        raise NotFoundError(f"Unknown user: {user_pk}")
    return list(Order.objects.filter(user_id=user_pk).prefetch_related("items"))


def update_order_status(order_id, status) -> Order:
    """Only the status is mutable; line items stay as placed."""
    updated = Order.objects.filter(pk=_as_uuid(order_id, "order_id")).update(status=status, updated_at=timezone.now())
    if not updated:
        raise NotFoundError(f"Unknown order: {order_id}")
    logger.info(f"order {order_id} status -> {status}")
    return get_order(order_id)
