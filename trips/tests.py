from datetime import date, timedelta
from unittest import mock
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase
from .models import Trip, TripSeat
from .services import (
    CapacityRollover,
    SeatLedger,
    TripCodeGenerator,
    TripLifecycle,
    TripService,
)
from .tasks import rebalance_route, rebalance_all_routes
from tickets.services import TicketService
from exceptions.handlers import (
    BusCapacityExceededException,
    InvalidInputException,
    InvalidTripTransitionException,
    NotFoundException,
    SchedulingConflictException,
    SeatUnavailableException,
)
from utils.factories import TransitFactory


class SeatLedgerTest(TestCase):
    """Test cases for the per-trip seat ledger."""

    def setUp(self):
        self.trip = TransitFactory.trip(capacity=12)

    def test_ledger_matches_bus_capacity(self):
        """A new trip has one available seat per unit of capacity."""
        seats = list(self.trip.seats.values_list("seat_number", flat=True))
        self.assertEqual(len(seats), 12)
        self.assertEqual(len(set(seats)), 12)
        self.assertEqual(seats[0], "ST01")
        self.assertEqual(seats[-1], "ST12")
        self.assertFalse(self.trip.seats.exclude(status="available").exists())

    def test_reserve_is_one_shot(self):
        """Reserving a reserved seat fails."""
        SeatLedger.reserve(self.trip, "ST03")
        self.assertEqual(self.trip.seats.get(seat_number="ST03").status, "reserved")
        with self.assertRaises(SeatUnavailableException):
            SeatLedger.reserve(self.trip, "ST03")

    def test_reserve_unknown_label(self):
        with self.assertRaises(SeatUnavailableException):
            SeatLedger.reserve(self.trip, "ST99")

    def test_release_reports_missing_seat(self):
        SeatLedger.reserve(self.trip, "ST01")
        self.assertTrue(SeatLedger.release(self.trip, "ST01"))
        self.assertEqual(self.trip.seats.get(seat_number="ST01").status, "available")
        self.assertFalse(SeatLedger.release(self.trip, "ST99"))

    def test_recreate_for_capacity(self):
        SeatLedger.reserve(self.trip, "ST01")
        SeatLedger.recreate_for_capacity(self.trip, 4)
        self.assertEqual(self.trip.seats.count(), 4)
        self.assertFalse(self.trip.seats.filter(status="reserved").exists())


class TripCodeTest(TestCase):
    """Test cases for trip code allocation."""

    def test_codes_follow_date_and_sequence(self):
        today = timezone.localdate().strftime("%Y%m%d")
        first = TransitFactory.trip()
        second = TransitFactory.trip()
        self.assertEqual(first.trip_code, f"TRIP-{today}-0001")
        self.assertEqual(second.trip_code, f"TRIP-{today}-0002")

    def test_global_sequence_runs_across_days(self):
        self.assertEqual(TripCodeGenerator.next_code(date(2025, 1, 1)), "TRIP-20250101-0001")
        self.assertEqual(TripCodeGenerator.next_code(date(2025, 1, 2)), "TRIP-20250102-0002")

    @override_settings(TRIP_CODE_SEQUENCE_SCOPE="daily")
    def test_daily_sequence_resets(self):
        self.assertEqual(TripCodeGenerator.next_code(date(2025, 1, 1)), "TRIP-20250101-0001")
        self.assertEqual(TripCodeGenerator.next_code(date(2025, 1, 1)), "TRIP-20250101-0002")
        self.assertEqual(TripCodeGenerator.next_code(date(2025, 1, 2)), "TRIP-20250102-0001")


class TripCreationTest(TestCase):

    def setUp(self):
        self.bus = TransitFactory.bus(capacity=3)
        self.driver = TransitFactory.driver()
        self.route = TransitFactory.route()
        self.embark = timezone.now() + timedelta(days=1)

    def test_scheduling_conflict(self):
        """Same bus, driver and embark time cannot be scheduled twice."""
        TripService.create_trip(self.bus.pk, self.driver.pk, self.route.pk, self.embark)
        with self.assertRaises(SchedulingConflictException):
            TripService.create_trip(self.bus.pk, self.driver.pk, self.route.pk, self.embark)
        self.assertEqual(Trip.objects.count(), 1)

    def test_missing_references(self):
        with self.assertRaises(NotFoundException):
            TripService.create_trip(9999, self.driver.pk, self.route.pk, self.embark)
        with self.assertRaises(NotFoundException):
            TripService.create_trip(self.bus.pk, 9999, self.route.pk, self.embark)
        with self.assertRaises(NotFoundException):
            TripService.create_trip(self.bus.pk, self.driver.pk, 9999, self.embark)
        self.assertFalse(Trip.objects.exists())

    def test_initial_status_must_be_bookable(self):
        trip = TripService.create_trip(
            self.bus.pk, self.driver.pk, self.route.pk, self.embark, status="available"
        )
        self.assertEqual(trip.status, "available")
        with self.assertRaises(InvalidInputException):
            TripService.create_trip(
                self.bus.pk, self.driver.pk, self.route.pk,
                self.embark + timedelta(hours=1), status="completed",
            )


class TripLifecycleTest(TestCase):

    def setUp(self):
        self.trip = TransitFactory.trip()

    def test_same_status_is_noop(self):
        self.assertFalse(TripLifecycle.transition(self.trip, "scheduled"))

    def test_illegal_transition_rejected(self):
        TripLifecycle.transition(self.trip, "embarked")
        TripLifecycle.transition(self.trip, "completed")
        with self.assertRaises(InvalidTripTransitionException):
            TripLifecycle.transition(self.trip, "scheduled")
        self.trip.refresh_from_db()
        self.assertEqual(self.trip.status, "completed")

    def test_scheduled_cannot_jump_to_completed(self):
        with self.assertRaises(InvalidTripTransitionException):
            TripLifecycle.transition(self.trip, "completed")

    def test_completion_sets_arrival_time(self):
        TripLifecycle.transition(self.trip, "embarked")
        self.assertIsNone(self.trip.arrival_time)
        TripLifecycle.transition(self.trip, "completed")
        self.trip.refresh_from_db()
        self.assertIsNotNone(self.trip.arrival_time)

    def test_unknown_status(self):
        with self.assertRaises(InvalidInputException):
            TripLifecycle.transition(self.trip, "teleported")

    @mock.patch("trips.services.NotificationService.send_bulk_sms")
    def test_embarking_texts_passengers_after_commit(self, send_bulk_sms):
        """Every distinct ticket holder phone gets one SMS."""
        passenger = TransitFactory.user()
        clerk = TransitFactory.user(role="staff")
        with mock.patch("tickets.services.TicketService._deliver"):
            TicketService.create_walk_in_ticket(passenger, self.trip.pk, "ST01", served_by=clerk)
            TicketService.book_online(passenger, self.trip.pk)

        with self.captureOnCommitCallbacks(execute=True):
            TripService.update_trip_status(self.trip, "embarked")

        send_bulk_sms.assert_called_once()
        phones, message = send_bulk_sms.call_args[0]
        self.assertEqual(phones, [passenger.phone])
        self.assertIn(self.trip.trip_code, message)

    @mock.patch("trips.services.NotificationService.send_bulk_sms")
    def test_no_sms_for_rejected_transition(self, send_bulk_sms):
        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(InvalidTripTransitionException):
                TripService.update_trip_status(self.trip, "completed")
        send_bulk_sms.assert_not_called()


@mock.patch("tickets.services.TicketService._deliver")
class CapacityRolloverTest(TestCase):
    """Test cases for saturation and successor promotion."""

    def setUp(self):
        self.route = TransitFactory.route()
        self.first = TransitFactory.trip(route=self.route, hours_ahead=2, status="available")
        self.second = TransitFactory.trip(route=self.route, hours_ahead=5)
        self.passenger = TransitFactory.user()

    def test_evaluate_below_capacity_changes_nothing(self, _deliver):
        result = CapacityRollover.evaluate_saturation(self.first)
        self.assertEqual(result["confirmed"], 0)
        self.assertEqual(self.first.status, "available")

    @override_settings(ROLLOVER_REQUIRE_SUCCESSOR=False)
    def test_rebalance_route_is_idempotent(self, _deliver):
        TicketService.create_walk_in_ticket(self.passenger, self.first.pk, "ST01")
        TicketService.create_walk_in_ticket(self.passenger, self.first.pk, "ST02")
        # Undo the inline rollover so the sweep has work to do
        Trip.objects.filter(pk=self.first.pk).update(status="available")
        Trip.objects.filter(pk=self.second.pk).update(status="scheduled")

        summary = CapacityRollover.rebalance_route(self.route)
        self.assertEqual(summary["saturated"], [self.first.trip_code])
        self.assertEqual(summary["promoted"], [self.second.trip_code])
        self.first.refresh_from_db()
        self.second.refresh_from_db()
        self.assertEqual(self.first.status, "fully_booked")
        self.assertEqual(self.second.status, "available")

        again = CapacityRollover.rebalance_route(self.route)
        self.assertEqual(again["saturated"], [])
        self.assertEqual(again["reopened"], [])
        self.second.refresh_from_db()
        self.assertEqual(self.second.status, "available")

    def test_rebalance_opens_successor_for_full_trip_left_without_one(self, _deliver):
        # Full trip whose only later trip was added after it filled up
        Trip.objects.filter(pk=self.second.pk).delete()
        TripSeat.objects.filter(trip=self.first).update(status="reserved")
        for label in ("ST01", "ST02"):
            self.first.tickets.create(
                ticket_number=f"TKT-1000{label[-1]}", user=self.passenger, seat_number=label,
                status="confirmed", ticket_type="walkin",
            )
        Trip.objects.filter(pk=self.first.pk).update(status="fully_booked")
        late = TransitFactory.trip(route=self.route, hours_ahead=8)
        later = TransitFactory.trip(route=self.route, hours_ahead=12)

        summary = CapacityRollover.rebalance_route(self.route)
        self.assertEqual(summary["promoted"], [late.trip_code])
        late.refresh_from_db()
        later.refresh_from_db()
        self.assertEqual(late.status, "available")
        self.assertEqual(later.status, "scheduled")

        again = CapacityRollover.rebalance_route(self.route)
        self.assertEqual(again["promoted"], [])

    def test_rebalance_reports_missing_successor(self, _deliver):
        lonely_route = TransitFactory.route(origin="Kumasi", destination="Tamale")
        trip = TransitFactory.trip(route=lonely_route, capacity=1)
        TripSeat.objects.filter(trip=trip).update(status="reserved")
        trip.tickets.create(
            ticket_number="TKT-000001", user=self.passenger, seat_number="ST01",
            status="confirmed", ticket_type="walkin",
        )
        summary = CapacityRollover.rebalance_route(lonely_route)
        self.assertEqual(summary["without_successor"], [trip.trip_code])
        trip.refresh_from_db()
        self.assertEqual(trip.status, "fully_booked")

    def test_rebalance_tasks(self, _deliver):
        self.assertIsNone(rebalance_route(999999))
        self.assertEqual(rebalance_route(self.route.pk)["route"], self.route.pk)
        summaries = rebalance_all_routes()
        self.assertIn(self.route.pk, [summary["route"] for summary in summaries])


@mock.patch("tickets.services.TicketService._deliver")
class BusReassignmentTest(TestCase):

    def setUp(self):
        self.trip = TransitFactory.trip(capacity=4)
        self.passenger = TransitFactory.user()

    def test_busy_bus_rejected(self, _deliver):
        small_bus = TransitFactory.bus(capacity=1)
        TransitFactory.trip(bus=small_bus)
        with self.assertRaises(BusCapacityExceededException):
            TripService.reassign_bus(self.trip, small_bus.pk)
        self.trip.refresh_from_db()
        self.assertNotEqual(self.trip.bus_id, small_bus.pk)

    def test_held_seat_missing_on_new_bus(self, _deliver):
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST04")
        smaller = TransitFactory.bus(capacity=3)
        with self.assertRaises(BusCapacityExceededException):
            TripService.reassign_bus(self.trip, smaller.pk)
        self.assertEqual(self.trip.seats.count(), 4)
        self.assertEqual(self.trip.seats.get(seat_number="ST04").status, "reserved")

    def test_held_seats_carried_over(self, _deliver):
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST02")
        bigger = TransitFactory.bus(capacity=10)
        trip = TripService.reassign_bus(self.trip, bigger.pk)
        self.assertEqual(trip.bus_id, bigger.pk)
        self.assertEqual(trip.seats.count(), 10)
        self.assertEqual(
            list(trip.seats.filter(status="reserved").values_list("seat_number", flat=True)),
            ["ST02"],
        )

    def test_unknown_bus(self, _deliver):
        with self.assertRaises(NotFoundException):
            TripService.reassign_bus(self.trip, 9999)


@mock.patch("tickets.services.TicketService._deliver")
class TripAPITest(APITestCase):
    """Test cases for the trips API."""

    def setUp(self):
        self.staff = TransitFactory.user(role="staff")
        self.customer = TransitFactory.user()
        self.bus = TransitFactory.bus(capacity=3)
        self.driver = TransitFactory.driver()
        self.route = TransitFactory.route()
        self.url = reverse("trip-list")

    def _payload(self, **extra):
        data = {
            "bus": self.bus.pk,
            "driver": self.driver.pk,
            "route": self.route.pk,
            "embark_time": (timezone.now() + timedelta(days=1)).isoformat(),
        }
        data.update(extra)
        return data

    def test_staff_schedules_trip(self, _deliver):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(self.url, self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data["trip_code"].startswith("TRIP-"))
        self.assertEqual(response.data["available_seats"], 3)
        self.assertEqual(response.data["ticket_count"], 0)

    def test_customer_cannot_schedule(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(self.url, self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_conflict_returns_400(self, _deliver):
        self.client.force_authenticate(user=self.staff)
        payload = self._payload()
        self.client.post(self.url, payload, format="json")
        response = self.client.post(self.url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data["success"])

    def test_status_change_through_put(self, _deliver):
        trip = TransitFactory.trip(bus=self.bus, driver=self.driver, route=self.route)
        self.client.force_authenticate(user=self.staff)
        url = reverse("trip-detail", args=[trip.pk])

        response = self.client.patch(url, {"status": "embarked"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "embarked")

        response = self.client.patch(url, {"status": "scheduled"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_trip_with_tickets_refused(self, _deliver):
        trip = TransitFactory.trip(bus=self.bus, driver=self.driver, route=self.route)
        TicketService.book_online(self.customer, trip.pk)
        self.client.force_authenticate(user=self.staff)
        response = self.client.delete(reverse("trip-detail", args=[trip.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Trip.objects.filter(pk=trip.pk).exists())

    def test_route_change_with_tickets_refused(self, _deliver):
        trip = TransitFactory.trip(bus=self.bus, driver=self.driver, route=self.route)
        TicketService.book_online(self.customer, trip.pk)
        other = TransitFactory.route(origin="Accra", destination="Ho")
        self.client.force_authenticate(user=self.staff)

        response = self.client.patch(
            reverse("trip-detail", args=[trip.pk]), {"route": other.pk}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        trip.refresh_from_db()
        self.assertEqual(trip.route_id, self.route.pk)

    def test_route_change_without_tickets(self, _deliver):
        trip = TransitFactory.trip(bus=self.bus, driver=self.driver, route=self.route)
        other = TransitFactory.route(origin="Accra", destination="Ho")
        self.client.force_authenticate(user=self.staff)

        response = self.client.patch(
            reverse("trip-detail", args=[trip.pk]), {"route": other.pk}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        trip.refresh_from_db()
        self.assertEqual(trip.route_id, other.pk)

    def test_delete_trip_removes_seats(self, _deliver):
        trip = TransitFactory.trip(bus=self.bus, driver=self.driver, route=self.route)
        self.client.force_authenticate(user=self.staff)
        response = self.client.delete(reverse("trip-detail", args=[trip.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(TripSeat.objects.filter(trip_id=trip.pk).exists())

    def test_read_projections(self, _deliver):
        trip = TransitFactory.trip(bus=self.bus, driver=self.driver, route=self.route)
        TicketService.book_online(self.customer, trip.pk)
        self.client.force_authenticate(user=self.customer)

        response = self.client.get(reverse("trip-seats", args=[trip.pk]))
        self.assertEqual(len(response.data["seats"]), 3)

        response = self.client.get(reverse("trip-by-route", kwargs={"route_id": self.route.pk}))
        self.assertEqual([t["id"] for t in response.data], [trip.pk])

        response = self.client.get(reverse("trip-by-bus", kwargs={"bus_id": self.bus.pk}))
        self.assertEqual(len(response.data), 1)

        response = self.client.get(reverse("trip-by-user", kwargs={"user_id": self.customer.pk}))
        self.assertEqual(len(response.data), 1)

        response = self.client.get(reverse("trip-by-user", kwargs={"user_id": self.staff.pk}))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_route_projection_date_range(self, _deliver):
        TransitFactory.trip(bus=self.bus, driver=self.driver, route=self.route, hours_ahead=24 * 10)
        self.client.force_authenticate(user=self.customer)
        today = timezone.localdate().isoformat()
        response = self.client.get(
            reverse("trip-by-route", kwargs={"route_id": self.route.pk}),
            {"start_date": today, "end_date": today},
        )
        self.assertEqual(response.data, [])

    def test_unknown_trip_is_404(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        response = self.client.get(reverse("trip-detail", args=[9999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
