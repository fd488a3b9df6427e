import hashlib
import json
import logging

from django.conf import settings
from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from . import services
from .exceptions import NotFoundError, ValidationError
from .models import Order, Product
from .models_idem import IdempotencyKey
from .serializers import OrderCreateIn, OrderOut, OrderStatusIn, OrderSummaryOut, ProductOut
from .tx import retry_on_tx_failure

logger = logging.getLogger(__name__)

PRODUCT_ORDERING = {
    "newest": "-created_at",
    "oldest": "created_at",
    "priceLowest": "price",
    "priceHighest": "-price",
}


def _int_param(request, name, default):
    raw = request.query_params.get(name, default)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")
    if value < 0:
        raise ValidationError(f"{name} must be >= 0")
    return value


def _place(user, items) -> dict:
    # ConflictError means our snapshot went stale; a fresh attempt re-reads stock
    attempts = settings.SHOP_ORDER_CONFLICT_RETRIES + 1
    place = retry_on_tx_failure(max_attempts=attempts)(services.place_order)
    order = place(user_id=user.pk, items=items)
    return OrderOut(order).data


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticatedOrReadOnly])
def orders_view(request):
    if request.method == "GET":
        return Response(OrderSummaryOut(Order.objects.all(), many=True).data)

    ser = OrderCreateIn(data=request.data)
    ser.is_valid(raise_exception=True)
    items = ser.validated_data["items"]

    idem = request.headers.get("Idempotency-Key")
    if idem:
        body_hash = hashlib.sha256(json.dumps(items, sort_keys=True, default=str).encode()).hexdigest()
        with transaction.atomic():
            rec, created = IdempotencyKey.objects.select_for_update().get_or_create(
                key=idem, user=request.user,
                defaults={"request_hash": body_hash, "status_code": 0, "response_body": {}},
            )
            if not created and rec.status_code:
                if rec.request_hash != body_hash:
                    raise ValidationError("Idempotency-Key was already used for a different request")
                logger.info(f"replaying order response for idempotency key {idem}")
                return Response(rec.response_body, status=rec.status_code,
                                headers={"Location": f"/orders/{rec.response_body['id']}"})

            payload = _place(request.user, items)
            rec.request_hash, rec.response_body, rec.status_code = body_hash, payload, status.HTTP_201_CREATED
            rec.save(update_fields=["request_hash", "response_body", "status_code"])
    else:
        payload = _place(request.user, items)

    headers = {"Location": f"/orders/{payload['id']}"}
    return Response(payload, status=status.HTTP_201_CREATED, headers=headers)


@api_view(["GET", "PATCH"])
@permission_classes([IsAuthenticatedOrReadOnly])
def order_detail_view(request, order_id):
    if request.method == "PATCH":
        ser = OrderStatusIn(data=request.data)
        ser.is_valid(raise_exception=True)
        order = services.update_order_status(order_id, ser.validated_data["status"])
        return Response(OrderOut(order).data)
    return Response(OrderOut(services.get_order(order_id)).data)


@api_view(["GET"])
def user_orders_view(request, user_id):
    orders = services.list_user_orders(user_id)
    return Response(OrderSummaryOut(orders, many=True).data)


@api_view(["GET"])
def products_view(request):
    offset = _int_param(request, "offset", 0)
    limit = _int_param(request, "limit", 10)
    ordering = PRODUCT_ORDERING.get(request.query_params.get("order"), "-created_at")

    qs = Product.objects.order_by(ordering)
    category = request.query_params.get("category")
    if category:
        qs = qs.filter(category=category)
    search = request.query_params.get("search")
    if search:
        qs = qs.filter(name__icontains=search)

    return Response(ProductOut(qs[offset:offset + limit], many=True).data)


@api_view(["GET"])
def product_detail_view(request, product_id):
    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        raise NotFoundError(f"Unknown product: {product_id}")
    return Response(ProductOut(product).data)
