from unittest import mock
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase
from .models import Route, Stop
from trips.models import Trip
from tickets.services import TicketService
from utils.factories import TransitFactory


class RouteAPITest(APITestCase):
    """Test cases for routes and stops."""

    def setUp(self):
        self.staff = TransitFactory.user(role="staff")
        self.customer = TransitFactory.user()
        self.url = reverse("route-list")

    def test_staff_creates_route(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            self.url,
            {"origin": "Accra", "destination": "Kumasi", "distance": 250, "duration": 5},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["stops"], [])

    def test_same_origin_and_destination(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            self.url, {"origin": "Accra", "destination": " accra "}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_distance_must_be_positive(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            self.url, {"origin": "Accra", "destination": "Ho", "distance": -3}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stops_listed_and_added(self):
        route = TransitFactory.route(stops=("Kasoa",))
        url = reverse("route-stops", args=[route.pk])

        self.client.force_authenticate(user=self.customer)
        response = self.client.get(url)
        self.assertEqual([s["stop_name"] for s in response.data], ["Kasoa"])

        self.client.force_authenticate(user=self.staff)
        response = self.client.post(url, {"stop_name": "Mankessim", "price": "35.00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Stop.objects.filter(route=route).count(), 2)

    def test_negative_stop_price(self):
        route = TransitFactory.route(stops=())
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            reverse("route-stops", args=[route.pk]), {"stop_name": "Apam", "price": "-1"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_route_with_trips_cannot_be_deleted(self):
        trip = TransitFactory.trip()
        self.client.force_authenticate(user=self.staff)
        response = self.client.delete(reverse("route-detail", args=[trip.route_id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Route.objects.filter(pk=trip.route_id).exists())

    def test_stop_filter(self):
        first = TransitFactory.route(stops=("Kasoa",))
        TransitFactory.route(stops=("Nkawkaw",))
        self.client.force_authenticate(user=self.customer)
        response = self.client.get(reverse("stop-list"), {"route": first.pk})
        self.assertEqual([s["stop_name"] for s in response.data], ["Kasoa"])

    @mock.patch("tickets.services.TicketService._deliver")
    def test_rebalance_endpoint(self, _deliver):
        route = TransitFactory.route()
        full = TransitFactory.trip(route=route, capacity=1, hours_ahead=2)
        successor = TransitFactory.trip(route=route, hours_ahead=6)
        TicketService.create_walk_in_ticket(self.customer, full.pk, "ST01")
        Trip.objects.filter(pk=full.pk).update(status="available")
        Trip.objects.filter(pk=successor.pk).update(status="scheduled")

        self.client.force_authenticate(user=self.staff)
        response = self.client.post(reverse("route-rebalance", args=[route.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["saturated"], [full.trip_code])
        self.assertEqual(response.data["promoted"], [successor.trip_code])

        self.client.force_authenticate(user=self.customer)
        response = self.client.post(reverse("route-rebalance", args=[route.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
