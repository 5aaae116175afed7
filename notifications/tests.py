from unittest import mock
import requests
from django.core import mail
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase
from .models import Notification
from .services import NotificationService
from utils.factories import TransitFactory


TICKET_DETAILS = {
    "ticket_number": "TKT-123456",
    "origin": "Accra",
    "destination": "Cape Coast",
    "bus": "GR-0001-24",
    "seat": "ST01",
    "status": "confirmed",
}


class NotifyTest(TestCase):

    def setUp(self):
        self.customer = TransitFactory.user()

    def test_notification_stored(self):
        note = NotificationService.notify(self.customer, "Hello", "Welcome aboard")
        self.assertEqual(note.type, "info")
        self.assertFalse(note.is_read)
        self.assertEqual(self.customer.notifications.count(), 1)

    def test_operators_notified(self):
        admin = TransitFactory.user(role="admin")
        staff = TransitFactory.user(role="staff")
        TransitFactory.user(role="staff", is_active=False)

        self.assertEqual(NotificationService.notify_operators("Alert", "Check the fleet"), 2)
        self.assertEqual(
            set(Notification.objects.values_list("user_id", flat=True)), {admin.pk, staff.pk}
        )
        self.assertFalse(self.customer.notifications.exists())


class TicketEmailTest(TestCase):

    def test_email_sent(self):
        self.assertTrue(NotificationService.send_ticket_email("ama@example.com", TICKET_DETAILS))
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("TKT-123456", mail.outbox[0].body)
        self.assertEqual(mail.outbox[0].to, ["ama@example.com"])

    def test_missing_address_skipped(self):
        self.assertFalse(NotificationService.send_ticket_email("", TICKET_DETAILS))
        self.assertEqual(len(mail.outbox), 0)

    @mock.patch("notifications.services.send_mail", side_effect=OSError("connection refused"))
    def test_mail_failure_swallowed(self, send_mail):
        self.assertFalse(NotificationService.send_ticket_email("ama@example.com", TICKET_DETAILS))
        send_mail.assert_called_once()


class SmsTest(TestCase):

    @override_settings(ARKESEL_API_KEY="")
    @mock.patch("notifications.services._get_session")
    def test_skipped_without_api_key(self, get_session):
        self.assertIsNone(NotificationService.send_sms("0244000001", "hi"))
        self.assertIsNone(NotificationService.send_bulk_sms(["0244000001"], "hi"))
        get_session.assert_not_called()

    @override_settings(ARKESEL_API_KEY="secret", SMS_SENDER_ID="Transit")
    @mock.patch("notifications.services._get_session")
    def test_single_sms(self, get_session):
        get_session.return_value.get.return_value.json.return_value = {"code": "ok"}

        self.assertEqual(NotificationService.send_sms("0244000001", "Seat ST01"), {"code": "ok"})
        params = get_session.return_value.get.call_args.kwargs["params"]
        self.assertEqual(params["to"], "0244000001")
        self.assertEqual(params["from"], "Transit")
        self.assertEqual(params["api_key"], "secret")

    @override_settings(ARKESEL_API_KEY="secret")
    @mock.patch("notifications.services._get_session")
    def test_gateway_error_swallowed(self, get_session):
        get_session.return_value.get.side_effect = requests.ConnectionError("down")
        self.assertIsNone(NotificationService.send_sms("0244000001", "hi"))

    @override_settings(ARKESEL_API_KEY="secret")
    @mock.patch("notifications.services._get_session")
    def test_bulk_sms_drops_blank_numbers(self, get_session):
        get_session.return_value.post.return_value.json.return_value = {"status": "success"}

        NotificationService.send_bulk_sms(["0244000001", "", None, "0244000002"], "Trip delayed")
        call = get_session.return_value.post.call_args
        self.assertEqual(call.kwargs["json"]["recipients"], ["0244000001", "0244000002"])
        self.assertEqual(call.kwargs["headers"], {"api-key": "secret"})

    def test_no_recipient(self):
        self.assertIsNone(NotificationService.send_sms("", "hi"))
        self.assertIsNone(NotificationService.send_bulk_sms([], "hi"))


class NotificationAPITest(APITestCase):

    def setUp(self):
        self.customer = TransitFactory.user()
        self.other = TransitFactory.user()
        self.first = NotificationService.notify(self.customer, "One", "First")
        self.second = NotificationService.notify(self.customer, "Two", "Second")
        self.foreign = NotificationService.notify(self.other, "Other", "Not yours")
        self.client.force_authenticate(user=self.customer)

    def test_lists_own_notifications(self):
        response = self.client.get(reverse("notification-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({n["id"] for n in response.data}, {self.first.pk, self.second.pk})

    def test_mark_read(self):
        response = self.client.post(reverse("notification-mark-read", args=[self.first.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.first.refresh_from_db()
        self.assertTrue(self.first.is_read)

        response = self.client.get(reverse("notification-list"), {"unread": "true"})
        self.assertEqual([n["id"] for n in response.data], [self.second.pk])

    def test_cannot_mark_someone_elses(self):
        response = self.client.post(reverse("notification-mark-read", args=[self.foreign.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_all_read(self):
        response = self.client.post(reverse("notification-mark-all-read"))
        self.assertEqual(response.data["updated"], 2)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)
