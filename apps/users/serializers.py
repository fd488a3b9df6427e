from rest_framework import serializers

from .models import User, UserPreference


class LoginIn(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()


class SavedProductIn(serializers.Serializer):
    productId = serializers.UUIDField(source="product_id")


class UserPreferenceOut(serializers.ModelSerializer):
    receiveEmail = serializers.BooleanField(source="receive_email")

    class Meta:
        model = UserPreference
        fields = ["receiveEmail"]


class UserOut(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name")
    userPreference = UserPreferenceOut(source="preference", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "firstName", "lastName", "address", "userPreference", "createdAt", "updatedAt"]
