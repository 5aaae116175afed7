from rest_framework import serializers
from .models import Trip, TripSeat
from utils.constants import Choices


class TripSeatSerializer(serializers.ModelSerializer):

    class Meta:
        model = TripSeat
        fields = ["seat_number", "status"]


class TripSerializer(serializers.ModelSerializer):
    """
    Read model of a trip with the bus, driver and route flattened in.
    ``ticket_count`` is present when the queryset annotates it.
    """
    bus_number = serializers.CharField(source="bus.bus_number", read_only=True)
    capacity = serializers.IntegerField(source="bus.capacity", read_only=True)
    driver_name = serializers.SerializerMethodField()
    origin = serializers.CharField(source="route.origin", read_only=True)
    destination = serializers.CharField(source="route.destination", read_only=True)
    ticket_count = serializers.IntegerField(read_only=True, required=False)
    available_seats = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Trip
        fields = [
            "id", "trip_code", "bus", "bus_number", "capacity", "driver",
            "driver_name", "route", "origin", "destination", "embark_time",
            "arrival_time", "status", "is_scheduled", "ticket_count",
            "available_seats", "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_driver_name(self, obj):
        user = obj.driver.user
        return user.get_full_name() or user.username


class TripCreateSerializer(serializers.Serializer):
    bus = serializers.IntegerField()
    driver = serializers.IntegerField()
    route = serializers.IntegerField()
    embark_time = serializers.DateTimeField()
    is_scheduled = serializers.BooleanField(default=True)
    status = serializers.ChoiceField(choices=Choices.TRIP_STATUS_CHOICES, required=False)


class TripUpdateSerializer(serializers.Serializer):
    """
    Every field is optional; only the ones sent are applied.
    """
    bus = serializers.IntegerField(required=False)
    driver = serializers.IntegerField(required=False)
    route = serializers.IntegerField(required=False)
    embark_time = serializers.DateTimeField(required=False)
    arrival_time = serializers.DateTimeField(required=False, allow_null=True)
    is_scheduled = serializers.BooleanField(required=False)
    status = serializers.ChoiceField(choices=Choices.TRIP_STATUS_CHOICES, required=False)
