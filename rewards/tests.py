from unittest import mock
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase
from .models import PointsHistory
from .services import RewardService
from tickets.services import TicketService
from exceptions.handlers import InvalidInputException
from utils.factories import TransitFactory


@mock.patch("tickets.services.TicketService._deliver")
class RewardAwardTest(TestCase):
    """Test cases for awarding loyalty points."""

    def setUp(self):
        self.passenger = TransitFactory.user()

    def _ticket_on(self, route):
        trip = TransitFactory.trip(route=route, capacity=4)
        return trip, TicketService.create_walk_in_ticket(self.passenger, trip.pk, "ST01")

    def test_points_are_floor_of_distance(self, _deliver):
        trip, ticket = self._ticket_on(TransitFactory.route(distance=74.9))
        entry = RewardService.award(self.passenger, trip, ticket)
        self.assertEqual(entry.points, 2)
        self.assertEqual(entry.type, "award")
        self.assertIn("74.9", entry.description)
        self.assertEqual(self.passenger.total_points, 2)

    @override_settings(POINTS_DISTANCE_UNIT=10)
    def test_distance_unit_is_configurable(self, _deliver):
        trip, ticket = self._ticket_on(TransitFactory.route(distance=55))
        self.assertEqual(RewardService.award(self.passenger, trip, ticket).points, 5)

    def test_missing_distance_is_skipped(self, _deliver):
        trip, ticket = self._ticket_on(TransitFactory.route(distance=None))
        self.assertIsNone(RewardService.award(self.passenger, trip, ticket))
        self.assertFalse(PointsHistory.objects.exists())
        self.passenger.refresh_from_db()
        self.assertEqual(self.passenger.total_points, 0)

    def test_ticket_awarded_once(self, _deliver):
        trip, ticket = self._ticket_on(TransitFactory.route(distance=100))
        RewardService.award(self.passenger, trip, ticket)
        self.assertIsNone(RewardService.award(self.passenger, trip, ticket))
        self.assertEqual(PointsHistory.objects.count(), 1)
        self.passenger.refresh_from_db()
        self.assertEqual(self.passenger.total_points, 4)

    def test_non_numeric_distance(self, _deliver):
        self.assertIsNone(RewardService.points_for_distance("far"))
        self.assertIsNone(RewardService.points_for_distance(None))
        self.assertEqual(RewardService.points_for_distance("50"), 2)


class RewardRedeemTest(TestCase):

    def setUp(self):
        self.user = TransitFactory.user(total_points=10)

    def test_redeem_decrements_balance(self):
        entry = RewardService.redeem(self.user, 4, "Free water")
        self.assertEqual(entry.type, "redeem")
        self.assertEqual(entry.points, 4)
        self.user.refresh_from_db()
        self.assertEqual(self.user.total_points, 6)

    def test_redeem_more_than_balance(self):
        with self.assertRaises(InvalidInputException):
            RewardService.redeem(self.user, 11)
        self.user.refresh_from_db()
        self.assertEqual(self.user.total_points, 10)

    def test_redeem_non_positive(self):
        with self.assertRaises(InvalidInputException):
            RewardService.redeem(self.user, 0)


class RewardAPITest(APITestCase):

    def setUp(self):
        self.user = TransitFactory.user(total_points=30)
        self.other = TransitFactory.user(total_points=5)
        RewardService.redeem(self.other, 1)

    def test_history_is_private(self):
        RewardService.redeem(self.user, 5)
        self.client.force_authenticate(user=self.user)
        response = self.client.get(reverse("reward-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["balance"], 25)
        self.assertEqual(len(response.data["history"]), 1)

    def test_redeem_endpoint(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.post(reverse("reward-redeem"), {"points": 10}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["balance"], 20)

        response = self.client.post(reverse("reward-redeem"), {"points": 100}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data["success"])
