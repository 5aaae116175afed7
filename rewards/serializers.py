from rest_framework import serializers
from .models import PointsHistory


class PointsHistorySerializer(serializers.ModelSerializer):
    ticket_number = serializers.CharField(source="ticket.ticket_number", read_only=True, default=None)

    class Meta:
        model = PointsHistory
        fields = ["id", "user", "ticket", "ticket_number", "type", "points", "description", "created_at"]
        read_only_fields = fields


class RedeemSerializer(serializers.Serializer):
    points = serializers.IntegerField()
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
