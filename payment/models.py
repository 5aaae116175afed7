from django.conf import settings
from django.db import models
from tickets.models import Ticket
from utils.constants import Choices


class PaymentTransaction(models.Model):
    """
    A payment made for a ticket. A completed payment marks the ticket paid;
    a ticket takes at most one completed payment.
    """
    ticket = models.ForeignKey(
        Ticket, on_delete=models.SET_NULL, null=True, related_name="payments"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="payments"
    )
    transaction_id = models.CharField(max_length=100)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(
        max_length=20, choices=Choices.PAYMENT_STATUS_CHOICES, default="pending"
    )
    payment_method = models.CharField(max_length=20, choices=Choices.PAYMENT_METHOD_CHOICES)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payment_transactions"
        constraints = [
            models.UniqueConstraint(
                fields=["ticket"],
                condition=models.Q(status="completed"),
                name="unique_completed_payment_per_ticket",
            )
        ]
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.transaction_id} - {self.status}"
