from rest_framework import serializers
from .models import Route, Stop
from utils.validators import RouteValidators
from utils.constants import RouteMessage
from exceptions.handlers import InvalidInputException


class StopSerializer(serializers.ModelSerializer):

    class Meta:
        model = Stop
        fields = ["id", "route", "stop_name", "price", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_price(self, value):
        if value < 0:
            raise InvalidInputException(RouteMessage.PRICE_INVALID)
        return value


class RouteSerializer(serializers.ModelSerializer):
    """
    Route with its stops nested read-only.
    """
    stops = StopSerializer(many=True, read_only=True)

    class Meta:
        model = Route
        fields = [
            "id", "origin", "destination", "distance", "duration", "stops",
            "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_distance(self, value):
        return RouteValidators.validate_positive(value, RouteMessage.DISTANCE_INVALID)

    def validate_duration(self, value):
        return RouteValidators.validate_positive(value, RouteMessage.DURATION_INVALID)

    def validate(self, attrs):
        origin = attrs.get("origin", getattr(self.instance, "origin", None))
        destination = attrs.get("destination", getattr(self.instance, "destination", None))
        RouteValidators.validate_endpoints(origin, destination)
        return attrs
