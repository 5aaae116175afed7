from rest_framework import serializers
from .models import PaymentTransaction
from utils.constants import Choices
from utils.validators import PaymentValidators


class PaymentTransactionSerializer(serializers.ModelSerializer):
    """
    Read model of a payment.
    """
    ticket_number = serializers.CharField(source="ticket.ticket_number", read_only=True, default=None)

    class Meta:
        model = PaymentTransaction
        fields = [
            "id",
            "ticket",
            "ticket_number",
            "user",
            "amount",
            "payment_method",
            "status",
            "transaction_id",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    """
    Validates a new payment using the centralized payment validators.
    """
    ticket = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    payment_method = serializers.CharField(max_length=20)
    status = serializers.ChoiceField(choices=Choices.PAYMENT_STATUS_CHOICES, default="completed")
    transaction_id = serializers.CharField(max_length=100, required=False)

    def validate_payment_method(self, value):
        return PaymentValidators.validate_payment_method(value.strip().upper())

    def validate_amount(self, value):
        return PaymentValidators.validate_payment_amount(value)

    def validate_transaction_id(self, value):
        return PaymentValidators.validate_transaction_id(value)
