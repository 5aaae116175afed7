from unittest import mock
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase
from .models import PaymentTransaction
from tickets.services import TicketService
from rewards.models import PointsHistory
from utils.factories import TransitFactory


@mock.patch("tickets.services.TicketService._deliver")
class PaymentAPITest(APITestCase):
    """Test cases for recording ticket payments."""

    def setUp(self):
        self.customer = TransitFactory.user()
        self.other = TransitFactory.user()
        self.trip = TransitFactory.trip(capacity=4)
        with mock.patch("tickets.services.TicketService._deliver"):
            self.ticket = TicketService.create_walk_in_ticket(self.customer, self.trip.pk, "ST01")
        self.url = reverse("payment-list")

    def _pay(self, **extra):
        data = {"ticket": self.ticket.pk, "amount": "40.00", "payment_method": "momo"}
        data.update(extra)
        return self.client.post(self.url, data, format="json")

    def test_completed_payment_marks_ticket_paid(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        response = self._pay()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data["is_paid"])
        self.assertEqual(response.data["payment"]["payment_method"], "MOMO")
        self.assertIsNotNone(response.data["payment"]["paid_at"])

        self.ticket.refresh_from_db()
        self.assertTrue(self.ticket.is_paid)
        self.assertEqual(PointsHistory.objects.filter(ticket=self.ticket).count(), 1)

    def test_second_completed_payment_conflicts(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        self._pay()
        response = self._pay()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(PaymentTransaction.objects.count(), 1)

    def test_failed_payment_leaves_ticket_unpaid(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        response = self._pay(status="failed")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.ticket.refresh_from_db()
        self.assertFalse(self.ticket.is_paid)

    def test_cannot_pay_for_someone_else(self, _deliver):
        self.client.force_authenticate(user=self.other)
        response = self._pay()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_invalid_method_and_amount(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        self.assertEqual(self._pay(payment_method="cheque").status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._pay(amount="0").status_code, status.HTTP_400_BAD_REQUEST)

    def test_payments_are_immutable(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        payment_id = self._pay().data["payment"]["id"]
        url = reverse("payment-detail", args=[payment_id])
        self.assertEqual(self.client.patch(url, {"amount": "1"}, format="json").status_code, 405)
        self.assertEqual(self.client.delete(url).status_code, 405)

    def test_customer_lists_own_payments(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        self._pay()
        self.client.force_authenticate(user=self.other)
        response = self.client.get(self.url)
        self.assertEqual(response.data, [])
