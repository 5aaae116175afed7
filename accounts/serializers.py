from rest_framework import serializers
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from .models import User, Role
from utils.constants import UserMessage
from utils.validators import UserFieldValidators
from exceptions.handlers import InvalidInputException


class RoleSerializer(serializers.ModelSerializer):
    """Serializer for Role model."""

    class Meta:
        model = Role
        fields = ["id", "name", "description"]


class RegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for self-service registration.

    Customers register without a role id. Staff and driver accounts pass
    the role id explicitly; the admin role can never be self-assigned.
    """
    role_id = serializers.IntegerField(required=False, help_text="Role ID from the Role table")
    password = serializers.CharField(write_only=True, min_length=8)
    confirm_password = serializers.CharField(write_only=True, required=False)

    class Meta:
        model = User
        fields = [
            "username", "email", "phone", "password", "confirm_password",
            "first_name", "last_name", "role_id",
        ]

    def validate_email(self, value):
        return UserFieldValidators.validate_email_uniqueness(value)

    def validate_phone(self, value):
        return UserFieldValidators.validate_phone(value)

    def validate_username(self, value):
        return UserFieldValidators.validate_username(value)

    def validate_role_id(self, value):
        """
        Validates that the role exists and is not the admin role.
        """
        try:
            role = Role.objects.get(id=value)
        except Role.DoesNotExist:
            raise InvalidInputException(UserMessage.ROLE_NOT_FOUND)
        if role.name == "admin":
            raise InvalidInputException(UserMessage.ADMIN_ROLE_REGISTRATION_NOT_ALLOWED)
        return value

    def validate(self, data):
        password = data.get("password")
        confirm_password = data.pop("confirm_password", None)

        if password and confirm_password and password != confirm_password:
            raise InvalidInputException(UserMessage.PASSWORD_NOT_MATCH)

        return data

    def create(self, validated_data):
        role_id = validated_data.pop("role_id", None)
        if role_id:
            role = Role.objects.get(id=role_id)
        else:
            role, _ = Role.objects.get_or_create(name="customer")
        password = validated_data.pop("password")
        return User.objects.create_user(
            password=password, role=role, **validated_data
        )


class UserSerializer(serializers.ModelSerializer):
    """
    Public view of a user, including the loyalty point balance.
    """
    role = RoleSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "phone",
            "first_name",
            "last_name",
            "role",
            "total_points",
            "is_active",
            "created_at",
            "last_login",
        ]
        read_only_fields = ["role", "total_points", "created_at", "last_login", "is_active"]


class LoginSerializer(serializers.Serializer):
    """
    Serializer for user authentication and login validation.

    Authenticates the username/password pair with Django's ``authenticate``
    and rejects inactive accounts.
    """

    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        """
        Validates user authentication credentials.

        Args:
            data: Dictionary containing username and password

        Returns:
            dict: Validated data with authenticated user object

        Raises:
            serializers.ValidationError: For authentication failures
        """
        username = data.get("username")
        password = data.get("password")

        user = authenticate(username=username, password=password)
        if not user or not user.is_active:
            raise serializers.ValidationError(UserMessage.INVALID_CREDENTIALS)

        data["user"] = user
        return data


class ChangePasswordSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)

    def validate_new_password(self, value):
        validate_password(value)
        return value


class UpdateProfileSerializer(serializers.ModelSerializer):
    """
    Partial profile updates. Email and phone stay unique among active users.
    """

    class Meta:
        model = User
        fields = ["first_name", "last_name", "email", "phone"]

    def validate_email(self, value):
        return UserFieldValidators.validate_email_uniqueness(
            value, context="profile update", exclude_user=self.instance
        )

    def validate_phone(self, value):
        return UserFieldValidators.validate_phone(
            value, context="profile update", exclude_user=self.instance
        )
