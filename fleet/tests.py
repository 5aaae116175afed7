from datetime import date, timedelta
from unittest import mock
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase
from .models import Bus, Driver
from .services import FleetService
from .tasks import check_license_expiry
from notifications.models import Notification
from utils.factories import TransitFactory


class LicenseExpiryTest(TestCase):
    """Test cases for the daily license expiry sweep."""

    def setUp(self):
        self.today = date(2025, 6, 1)
        self.admin = TransitFactory.user(role="admin")
        self.staff = TransitFactory.user(role="staff")
        self.expired = TransitFactory.driver(license_expiry=self.today - timedelta(days=1))
        self.expires_today = TransitFactory.driver(license_expiry=self.today)
        self.no_expiry = TransitFactory.driver(license_expiry=None)

    def test_expired_drivers_suspended(self):
        suspended = FleetService.check_license_expiry(today=self.today)
        self.assertEqual(suspended, [self.expired.pk])

        self.expired.refresh_from_db()
        self.expires_today.refresh_from_db()
        self.assertEqual(self.expired.status, "suspended")
        self.assertEqual(self.expires_today.status, "active")

    def test_driver_and_operators_notified(self):
        FleetService.check_license_expiry(today=self.today)
        driver_note = Notification.objects.get(user=self.expired.user)
        self.assertEqual(driver_note.type, "error")
        self.assertIn(self.expired.license_number, driver_note.message)
        self.assertTrue(Notification.objects.filter(user=self.admin, type="warning").exists())
        self.assertTrue(Notification.objects.filter(user=self.staff, type="warning").exists())

    def test_second_run_changes_nothing(self):
        FleetService.check_license_expiry(today=self.today)
        count = Notification.objects.count()
        self.assertEqual(FleetService.check_license_expiry(today=self.today), [])
        self.assertEqual(Notification.objects.count(), count)

    def test_terminated_drivers_left_alone(self):
        Driver.objects.filter(pk=self.expired.pk).update(status="terminated")
        self.assertEqual(FleetService.check_license_expiry(today=self.today), [])

    @mock.patch("fleet.tasks.FleetService.check_license_expiry", return_value=[7])
    def test_task_delegates_to_service(self, service):
        self.assertEqual(check_license_expiry(), [7])
        service.assert_called_once_with()


class FleetAPITest(APITestCase):
    """Test cases for bus and driver management."""

    def setUp(self):
        self.admin = TransitFactory.user(role="admin")
        self.staff = TransitFactory.user(role="staff")
        self.customer = TransitFactory.user()

    def test_staff_creates_bus(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            reverse("bus-list"),
            {"name": "Coach A", "model": "Yutong", "bus_number": "gr-1234-24", "capacity": 45},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["bus_number"], "GR-1234-24")

    def test_capacity_must_be_positive(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            reverse("bus-list"),
            {"name": "Coach B", "model": "Yutong", "bus_number": "GR-1-24", "capacity": 0},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_reads_but_cannot_write(self):
        TransitFactory.bus(capacity=30)
        self.client.force_authenticate(user=self.customer)
        self.assertEqual(self.client.get(reverse("bus-list")).status_code, status.HTTP_200_OK)
        response = self.client.post(
            reverse("bus-list"),
            {"name": "Coach C", "model": "VIP", "bus_number": "GR-2-24", "capacity": 10},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_bus_search_and_filter(self):
        TransitFactory.bus(name="Sprinter", capacity=14)
        TransitFactory.bus(name="Coach", capacity=50, status="maintenance")
        self.client.force_authenticate(user=self.customer)
        response = self.client.get(reverse("bus-list"), {"search": "sprint"})
        self.assertEqual(len(response.data), 1)
        response = self.client.get(reverse("bus-list"), {"status": "maintenance"})
        self.assertEqual(len(response.data), 1)

    def test_bus_with_trips_cannot_be_deleted(self):
        trip = TransitFactory.trip()
        self.client.force_authenticate(user=self.staff)
        response = self.client.delete(reverse("bus-detail", args=[trip.bus_id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Bus.objects.filter(pk=trip.bus_id).exists())

    def test_staff_creates_driver(self):
        driver_user = TransitFactory.user(role="driver", first_name="Yaw", last_name="Boateng")
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            reverse("driver-list"),
            {
                "user_id": driver_user.pk,
                "driver_no": "DRV900",
                "license_number": "GH-LIC-900",
                "license_expiry": (timezone.localdate() + timedelta(days=365)).isoformat(),
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["name"], "Yaw Boateng")

    def test_license_check_is_admin_only(self):
        url = reverse("driver-check-license-expiry")
        self.client.force_authenticate(user=self.staff)
        self.assertEqual(self.client.post(url).status_code, status.HTTP_403_FORBIDDEN)
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["suspended"], [])

    def test_duplicate_bus_number_conflicts(self):
        TransitFactory.bus(bus_number="GR-7777-24")
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            reverse("bus-list"),
            {"name": "Coach D", "model": "Yutong", "bus_number": "gr-7777-24", "capacity": 30},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_one_driver_profile_per_user(self):
        driver = TransitFactory.driver()
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            reverse("driver-list"),
            {"user_id": driver.user_id, "driver_no": "DRV901", "license_number": "GH-LIC-901"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_driver_update_keeps_own_license(self):
        driver = TransitFactory.driver()
        self.client.force_authenticate(user=self.staff)
        response = self.client.patch(
            reverse("driver-detail", args=[driver.pk]), {"status": "on_duty"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "on_duty")
