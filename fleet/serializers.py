from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import Bus, Driver
from utils.validators import FleetValidators

User = get_user_model()


class BusSerializer(serializers.ModelSerializer):

    class Meta:
        model = Bus
        fields = [
            "id", "name", "model", "bus_number", "capacity", "status",
            "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {"bus_number": {"validators": []}}

    def validate_capacity(self, value):
        return FleetValidators.validate_capacity(value)

    def validate_bus_number(self, value):
        value = value.strip().upper()
        return FleetValidators.validate_bus_number_uniqueness(value, exclude_bus=self.instance)


class DriverSerializer(serializers.ModelSerializer):
    """
    Driver profile. ``user_id`` links the profile to an existing account on
    write; reads also carry the user's name and phone.
    """
    user_id = serializers.PrimaryKeyRelatedField(
        source="user", queryset=User.objects.all()
    )
    name = serializers.SerializerMethodField()
    phone = serializers.CharField(source="user.phone", read_only=True)

    class Meta:
        model = Driver
        fields = [
            "id", "user_id", "name", "phone", "driver_no", "license_number",
            "license_expiry", "status", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {"license_number": {"validators": []}}

    def get_name(self, obj):
        return obj.user.get_full_name() or obj.user.username

    def validate(self, attrs):
        FleetValidators.validate_driver_uniqueness(
            attrs.get("user"), attrs.get("license_number"), exclude_driver=self.instance
        )
        return attrs
