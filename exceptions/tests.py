from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase
from .handlers import custom_exception_handler, SeatUnavailableException
from utils.constants import GeneralMessage, SeatMessage
from utils.factories import TransitFactory


class ExceptionHandlerTest(TestCase):

    def handle(self, exc):
        return custom_exception_handler(exc, {"view": None})

    def test_domain_error_keeps_its_status(self):
        response = self.handle(SeatUnavailableException())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"success": False, "message": SeatMessage.SEAT_UNAVAILABLE})

    def test_does_not_exist_is_404(self):
        response = self.handle(ObjectDoesNotExist())
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["message"], GeneralMessage.NOT_FOUND)

    def test_database_error_is_hidden(self):
        response = self.handle(DatabaseError("relation tickets does not exist"))
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["message"], GeneralMessage.SOMETHING_WENT_WRONG)

    def test_unexpected_error_is_500(self):
        response = self.handle(RuntimeError("boom"))
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertFalse(response.data["success"])


class TraceHeaderTest(APITestCase):

    def setUp(self):
        self.client.force_authenticate(user=TransitFactory.user())

    def test_trace_id_echoed(self):
        response = self.client.get(reverse("bus-list"), HTTP_X_TRACE_ID="trace-42")
        self.assertEqual(response["X-Trace-ID"], "trace-42")

    def test_trace_id_generated(self):
        response = self.client.get(reverse("bus-list"))
        self.assertTrue(response["X-Trace-ID"])

    def test_unauthenticated_error_shape(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse("bus-list"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data["success"])
