from django.db import models
from fleet.models import Bus, Driver
from routes.models import Route
from utils.constants import Choices


class Trip(models.Model):
    """
    One scheduled run of a bus along a route.

    ``status`` only changes through ``trips.services.TripLifecycle`` so every
    move is checked against the transition table. Tickets protect their trip
    from deletion.
    """
    trip_code = models.CharField(max_length=30, unique=True)
    bus = models.ForeignKey(Bus, on_delete=models.PROTECT, related_name="trips")
    driver = models.ForeignKey(Driver, on_delete=models.PROTECT, related_name="trips")
    route = models.ForeignKey(Route, on_delete=models.PROTECT, related_name="trips")
    embark_time = models.DateTimeField()
    arrival_time = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=30, choices=Choices.TRIP_STATUS_CHOICES, default="scheduled"
    )
    is_scheduled = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "trips"
        ordering = ["embark_time", "id"]
        indexes = [
            models.Index(fields=["route", "embark_time"], name="trip_route_embark_idx"),
        ]

    def __str__(self):
        return f"{self.trip_code} ({self.status})"


class TripSeat(models.Model):
    """
    Seat ledger entry: one row per seat label per trip.
    """
    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name="seats")
    seat_number = models.CharField(max_length=10)
    status = models.CharField(
        max_length=10, choices=Choices.SEAT_STATUS_CHOICES, default="available"
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "trip_seats"
        ordering = ["trip", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["trip", "seat_number"], name="unique_seat_label_per_trip"
            )
        ]

    def __str__(self):
        return f"{self.trip.trip_code} {self.seat_number} ({self.status})"


class TripCodeCounter(models.Model):
    """
    Sequence source for trip codes. ``scope`` is ``global`` or a YYYYMMDD
    day key, depending on TRIP_CODE_SEQUENCE_SCOPE.
    """
    scope = models.CharField(max_length=20, unique=True)
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "trip_code_counters"

    def __str__(self):
        return f"{self.scope}: {self.last_value}"
