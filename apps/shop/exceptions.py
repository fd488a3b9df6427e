from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler


class ShopError(Exception):
    """Base for order/product errors the HTTP layer maps to a status code."""

    code = "shop_error"
    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False

    def __init__(self, detail=None):
        self.detail = detail or self.code
        super().__init__(self.detail)


class ValidationError(ShopError):
    code = "validation_error"


class NotFoundError(ShopError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientStockError(ShopError):
    code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, shortages):
        # shortages: {product_id: (available, requested)}
        self.shortages = dict(shortages)
        detail = ", ".join(
            f"{pid}: have={have}, need={need}" for pid, (have, need) in self.shortages.items()
        )
        super().__init__(f"Insufficient stock ({detail})")


class ConflictError(ShopError):
    """Stock changed between the snapshot read and the commit."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT
    retryable = True


def exception_handler(exc, context):
    if isinstance(exc, ShopError):
        body = {"code": exc.code, "message": str(exc.detail)}
        if isinstance(exc, InsufficientStockError):
            body["shortages"] = {
                str(pid): {"available": have, "requested": need}
                for pid, (have, need) in exc.shortages.items()
            }
        return Response(body, status=exc.status_code)
    return drf_exception_handler(exc, context)
