from decimal import Decimal

from rest_framework import serializers

from .models import Order, OrderItem, OrderStatus, Product


class OrderItemIn(serializers.Serializer):
    productId = serializers.UUIDField(source="product_id")
    quantity = serializers.IntegerField(min_value=1)
    unitPrice = serializers.DecimalField(
        source="unit_price", max_digits=12, decimal_places=2, min_value=Decimal("0"), required=False
    )


class OrderCreateIn(serializers.Serializer):
    orderItems = OrderItemIn(many=True, source="items")

    def validate_orderItems(self, items):
        if not items:
            raise serializers.ValidationError("At least one item is required.")
        return items


class OrderStatusIn(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class ProductOut(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Product
        fields = ["id", "name", "description", "category", "price", "stock", "createdAt", "updatedAt"]


class OrderItemOut(serializers.ModelSerializer):
    productId = serializers.UUIDField(source="product_id", read_only=True)
    unitPrice = serializers.DecimalField(source="unit_price", max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "productId", "quantity", "unitPrice"]


class OrderOut(serializers.ModelSerializer):
    userId = serializers.UUIDField(source="user_id", read_only=True)
    orderItems = OrderItemOut(source="items", many=True, read_only=True)
    total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Order
        fields = ["id", "userId", "status", "orderItems", "total", "createdAt", "updatedAt"]


class OrderSummaryOut(serializers.ModelSerializer):
    userId = serializers.UUIDField(source="user_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Order
        fields = ["id", "userId", "status", "createdAt"]
