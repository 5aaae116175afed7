from django.db import transaction
from django.utils import timezone
from .models import Driver
from notifications.services import NotificationService
from utils.constants import FleetMessage
import logging

logger = logging.getLogger("fleet")


class FleetService:

    @staticmethod
    def check_license_expiry(today=None):
        """
        Suspends every driver whose license expired before ``today``.

        Each suspended driver gets a notification and every admin and staff
        user gets an alert. Drivers already suspended or terminated are left
        alone, so running the check twice on the same day changes nothing.

        Args:
            today (date, optional): Reference date, defaults to the local date

        Returns:
            list[int]: Ids of the drivers suspended by this run
        """
        today = today or timezone.localdate()
        suspended = []

        with transaction.atomic():
            expired = (
                Driver.objects.select_for_update()
                .select_related("user")
                .filter(license_expiry__lt=today)
                .exclude(status__in=["suspended", "terminated"])
            )
            for driver in expired:
                driver.status = "suspended"
                driver.save(update_fields=["status", "updated_at"])
                suspended.append(driver)

        for driver in suspended:
            expiry = driver.license_expiry.isoformat()
            NotificationService.notify(
                driver.user,
                FleetMessage.LICENSE_EXPIRED_SUBJECT,
                FleetMessage.LICENSE_EXPIRED_MESSAGE.format(
                    license_number=driver.license_number, expiry=expiry
                ),
                type="error",
            )
            NotificationService.notify_operators(
                FleetMessage.LICENSE_ALERT_SUBJECT,
                FleetMessage.LICENSE_ALERT_MESSAGE.format(
                    driver_no=driver.driver_no or driver.pk,
                    name=driver.user.get_full_name() or driver.user.username,
                    license_number=driver.license_number,
                    expiry=expiry,
                ),
            )
            logger.warning(
                f"Driver {driver.pk} suspended: license {driver.license_number} expired {expiry}"
            )

        logger.info(f"License expiry check for {today}: {len(suspended)} driver(s) suspended")
        return [driver.pk for driver in suspended]
