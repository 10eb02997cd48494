from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Operator profile."""

    is_scanner_operator = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'role',
            'is_scanner_operator',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )
