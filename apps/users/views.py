import logging

from django.conf import settings
from django.contrib.auth import authenticate
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.shop.exceptions import NotFoundError
from apps.shop.models import Product
from apps.shop.serializers import ProductOut

from .authentication import set_token_cookie
from .serializers import LoginIn, SavedProductIn, UserOut

logger = logging.getLogger(__name__)


@api_view(["POST"])
@authentication_classes([])
def login_view(request):
    ser = LoginIn(data=request.data)
    ser.is_valid(raise_exception=True)

    user = authenticate(request, **ser.validated_data)
    if user is None:
        logger.info(f"failed login for {ser.validated_data['email']}")
        return Response({"message": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)

    response = Response({"message": "Logged in successfully"})
    set_token_cookie(response, user)
    return response


@api_view(["POST"])
@authentication_classes([])
def logout_view(request):
    response = Response({"message": "Logged out successfully"})
    response.delete_cookie(settings.AUTH_TOKEN_COOKIE, samesite="Lax")
    return response


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response(UserOut(request.user).data)


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def saved_products_view(request):
    user = request.user
    if request.method == "GET":
        return Response(ProductOut(user.saved_products.all(), many=True).data)

    ser = SavedProductIn(data=request.data)
    ser.is_valid(raise_exception=True)
    product_id = ser.validated_data["product_id"]

    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        raise NotFoundError(f"Unknown product: {product_id}")

    # toggle: saving twice un-saves
    if user.saved_products.filter(pk=product_id).exists():
        user.saved_products.remove(product)
        code = status.HTTP_200_OK
    else:
        user.saved_products.add(product)
        code = status.HTTP_201_CREATED
    return Response(ProductOut(user.saved_products.all(), many=True).data, status=code)
