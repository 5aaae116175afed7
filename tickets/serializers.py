from rest_framework import serializers
from .models import Ticket
from utils.constants import Choices


class TicketSerializer(serializers.ModelSerializer):
    """
    Read model of a ticket with trip and route details flattened in.
    """
    trip_code = serializers.CharField(source="trip.trip_code", read_only=True)
    origin = serializers.CharField(source="trip.route.origin", read_only=True)
    destination = serializers.CharField(source="trip.route.destination", read_only=True)
    bus_number = serializers.CharField(source="trip.bus.bus_number", read_only=True)
    embark_time = serializers.DateTimeField(source="trip.embark_time", read_only=True)
    stop_name = serializers.CharField(source="stop.stop_name", read_only=True, default=None)
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = Ticket
        fields = [
            "id", "ticket_number", "user", "username", "recipient_name",
            "recipient_relationship", "trip", "trip_code", "origin",
            "destination", "bus_number", "embark_time", "stop", "stop_name",
            "preferred_seat", "seat_number", "is_paid", "status", "ticket_type",
            "is_confirmed", "is_picked", "served_by", "alighted_at",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class WalkInTicketSerializer(serializers.Serializer):
    """
    Counter sale. ``user`` defaults to the caller when the passenger has no
    account of their own.
    """
    user = serializers.IntegerField(required=False)
    trip = serializers.IntegerField()
    seat_number = serializers.CharField(max_length=10)
    stop = serializers.IntegerField(required=False, allow_null=True)
    recipient_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    recipient_relationship = serializers.CharField(max_length=50, required=False, allow_blank=True)
    is_paid = serializers.BooleanField(default=False)
    is_confirmed = serializers.BooleanField(default=False)

    def validate_seat_number(self, value):
        return value.strip().upper()


class OnlineBookingSerializer(serializers.Serializer):
    trip = serializers.IntegerField()
    preferred_seat = serializers.CharField(max_length=10, required=False, allow_blank=True)
    stop = serializers.IntegerField(required=False, allow_null=True)
    recipient_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    recipient_relationship = serializers.CharField(max_length=50, required=False, allow_blank=True)

    def validate_preferred_seat(self, value):
        return value.strip().upper()


class TicketUpdateSerializer(serializers.Serializer):
    """
    Every field is optional; only the ones sent are applied.
    """
    seat_number = serializers.CharField(max_length=10, required=False, allow_blank=True, allow_null=True)
    preferred_seat = serializers.CharField(max_length=10, required=False, allow_blank=True, allow_null=True)
    stop = serializers.IntegerField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=Choices.TICKET_STATUS_CHOICES, required=False)
    is_paid = serializers.BooleanField(required=False)
    is_confirmed = serializers.BooleanField(required=False)
    is_picked = serializers.BooleanField(required=False)
    recipient_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    recipient_relationship = serializers.CharField(max_length=50, required=False, allow_blank=True)

    def validate_seat_number(self, value):
        return value.strip().upper() if value else value

    def validate_preferred_seat(self, value):
        return value.strip().upper() if value else value
