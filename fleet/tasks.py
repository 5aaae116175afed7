from celery import shared_task
from .services import FleetService


@shared_task(name="fleet.check_license_expiry")
def check_license_expiry():
    """Daily beat job: suspend drivers with expired licenses."""
    return FleetService.check_license_expiry()
