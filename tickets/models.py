from django.conf import settings
from django.db import models
from django.db.models import Q
from routes.models import Stop
from trips.models import Trip
from utils.constants import Choices


class TicketQuerySet(models.QuerySet):

    def seat_holding(self):
        """
        Confirmed tickets whose passenger is still on board. These are the
        tickets counted against bus capacity.
        """
        return self.filter(status="confirmed", alighted_at__isnull=True)


class Ticket(models.Model):
    """
    A booking of one passenger on a trip.

    Walk-in tickets are confirmed on creation and hold ``seat_number``;
    online tickets start pending with an optional ``preferred_seat``.
    ``alighted_at`` is set when the passenger's seat is released at their
    stop, after which the ticket no longer holds the seat.
    """
    ticket_number = models.CharField(max_length=20, unique=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tickets"
    )
    recipient_name = models.CharField(max_length=100, blank=True, null=True)
    recipient_relationship = models.CharField(max_length=50, blank=True, null=True)
    trip = models.ForeignKey(Trip, on_delete=models.PROTECT, related_name="tickets")
    stop = models.ForeignKey(
        Stop, on_delete=models.PROTECT, null=True, blank=True, related_name="tickets"
    )
    preferred_seat = models.CharField(max_length=10, blank=True, null=True)
    seat_number = models.CharField(max_length=10, blank=True, null=True)
    is_paid = models.BooleanField(default=False)
    status = models.CharField(
        max_length=20, choices=Choices.TICKET_STATUS_CHOICES, default="pending"
    )
    ticket_type = models.CharField(
        max_length=10, choices=Choices.TICKET_TYPE_CHOICES, default="online"
    )
    is_confirmed = models.BooleanField(default=False)
    is_picked = models.BooleanField(default=False)
    served_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="served_tickets",
    )
    alighted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TicketQuerySet.as_manager()

    class Meta:
        db_table = "tickets"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["trip", "seat_number"],
                condition=Q(status="confirmed", alighted_at__isnull=True),
                name="unique_confirmed_seat_per_trip",
            )
        ]

    def __str__(self):
        return f"{self.ticket_number} ({self.status})"

    @property
    def holds_seat(self):
        return (
            self.status == "confirmed"
            and self.alighted_at is None
            and bool(self.seat_number)
        )
