from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from apps.users.models import UserRole

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "name", "email", "role", "date_joined"]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "name", "email"]


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=6)

    class Meta:
        model = User
        fields = ["id", "name", "email", "password", "role"]
        read_only_fields = ["id", "role"]

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=UserRole.choices)


class LoginSerializer(TokenObtainPairSerializer):
    """Email/password login returning the token pair plus the caller's name and role."""

    def validate(self, attrs):
        data = super().validate(attrs)
        data["name"] = self.user.name
        data["role"] = self.user.role
        return data
