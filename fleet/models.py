from django.db import models
from django.conf import settings
from utils.constants import Choices


class Bus(models.Model):
    """
    A vehicle in the fleet. ``capacity`` sizes the seat ledger of every
    trip the bus is scheduled on.
    """

    name = models.CharField(max_length=100)
    model = models.CharField(max_length=100)
    bus_number = models.CharField(max_length=30, unique=True)
    capacity = models.PositiveIntegerField()
    status = models.CharField(
        max_length=20, choices=Choices.BUS_STATUS_CHOICES, default="active"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "buses"
        ordering = ["bus_number"]

    def __str__(self):
        return f"{self.name} ({self.bus_number})"


class Driver(models.Model):
    """
    Driver profile attached to a user account.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="driver_profiles"
    )
    driver_no = models.CharField(max_length=30, blank=True)
    license_number = models.CharField(max_length=50, unique=True)
    license_expiry = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=20, choices=Choices.DRIVER_STATUS_CHOICES, default="active"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "drivers"
        ordering = ["id"]

    def __str__(self):
        return f"{self.driver_no or self.license_number} - {self.user.get_full_name() or self.user.username}"
