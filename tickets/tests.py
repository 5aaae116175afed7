from unittest import mock
from django.db import IntegrityError, transaction
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase
from .models import Ticket
from .services import TicketService
from trips.models import Trip
from trips.services import TripLifecycle
from rewards.models import PointsHistory
from notifications.models import Notification
from exceptions.handlers import (
    InvalidInputException,
    InvalidTicketTransitionException,
    NoAvailableSuccessorException,
    NoPassengersAtStopException,
    SeatUnavailableException,
    TicketNotFoundException,
    TripAlreadyDepartedException,
    TripNotFoundException,
)
from utils.factories import TransitFactory


def seat_status(trip, label):
    return trip.seats.get(seat_number=label).status


@mock.patch("tickets.services.TicketService._deliver")
class WalkInTicketTest(TestCase):
    """Test cases for counter sales."""

    def setUp(self):
        self.route = TransitFactory.route()
        self.trip = TransitFactory.trip(route=self.route, capacity=4)
        self.passenger = TransitFactory.user()

    def test_walk_in_reserves_seat(self, _deliver):
        ticket = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST02")
        self.assertEqual(ticket.status, "confirmed")
        self.assertEqual(ticket.ticket_type, "walkin")
        self.assertTrue(ticket.ticket_number.startswith("TKT-"))
        self.assertEqual(len(ticket.ticket_number), 10)
        self.assertEqual(seat_status(self.trip, "ST02"), "reserved")

    def test_every_confirmed_walk_in_holds_one_reserved_seat(self, _deliver):
        for label in ("ST01", "ST03"):
            TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, label)
        for ticket in Ticket.objects.filter(status="confirmed", ticket_type="walkin"):
            self.assertEqual(
                self.trip.seats.filter(seat_number=ticket.seat_number, status="reserved").count(), 1
            )
        self.assertEqual(self.trip.seats.filter(status="reserved").count(), 2)

    def test_taken_seat_rejected(self, _deliver):
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        with self.assertRaises(SeatUnavailableException):
            TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        self.assertEqual(Ticket.objects.count(), 1)

    def test_unknown_trip(self, _deliver):
        with self.assertRaises(TripNotFoundException):
            TicketService.create_walk_in_ticket(self.passenger, 9999, "ST01")

    def test_seat_required(self, _deliver):
        with self.assertRaises(InvalidInputException):
            TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "")

    def test_stop_must_be_on_route(self, _deliver):
        other_route = TransitFactory.route(origin="Tema", destination="Ho", stops=("Juapong",))
        with self.assertRaises(InvalidInputException):
            TicketService.create_walk_in_ticket(
                self.passenger, self.trip.pk, "ST01", stop=other_route.stops.first().pk
            )
        self.assertEqual(seat_status(self.trip, "ST01"), "available")

    def test_completed_trip_not_bookable(self, _deliver):
        TripLifecycle.transition(self.trip, "embarked")
        TripLifecycle.transition(self.trip, "completed")
        with self.assertRaises(InvalidInputException):
            TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")

    def test_paid_walk_in_awards_points(self, _deliver):
        ticket = TicketService.create_walk_in_ticket(
            self.passenger, self.trip.pk, "ST01", is_paid=True
        )
        self.passenger.refresh_from_db()
        self.assertEqual(self.passenger.total_points, 4)
        self.assertTrue(PointsHistory.objects.filter(ticket=ticket, type="award").exists())

    def test_two_confirmed_tickets_cannot_share_a_seat(self, _deliver):
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        with self.assertRaises(IntegrityError), transaction.atomic():
            Ticket.objects.create(
                ticket_number="TKT-999999", user=self.passenger, trip=self.trip,
                seat_number="ST01", status="confirmed", ticket_type="walkin",
            )


@mock.patch("tickets.services.TicketService._deliver")
class SaturationScenarioTest(TestCase):
    """Bus capacity 2, two walk-ins fill the trip."""

    def setUp(self):
        self.route = TransitFactory.route()
        self.trip = TransitFactory.trip(route=self.route, capacity=2, hours_ahead=2)
        self.passenger = TransitFactory.user()

    def test_full_trip_promotes_successor(self, _deliver):
        successor = TransitFactory.trip(route=self.route, hours_ahead=6)
        later = TransitFactory.trip(route=self.route, hours_ahead=10)

        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST02")

        self.trip.refresh_from_db()
        successor.refresh_from_db()
        later.refresh_from_db()
        self.assertEqual(self.trip.status, "fully_booked")
        self.assertEqual(successor.status, "available")
        self.assertEqual(later.status, "scheduled")

    def test_open_trip_is_skipped_for_next_scheduled(self, _deliver):
        already_open = TransitFactory.trip(route=self.route, hours_ahead=6, status="available")
        scheduled = TransitFactory.trip(route=self.route, hours_ahead=10)

        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST02")

        already_open.refresh_from_db()
        scheduled.refresh_from_db()
        self.assertEqual(already_open.status, "available")
        self.assertEqual(scheduled.status, "available")

    def test_only_open_later_trip_fails_booking(self, _deliver):
        TransitFactory.trip(route=self.route, hours_ahead=6, status="available")
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        with self.assertRaises(NoAvailableSuccessorException):
            TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST02")

        self.trip.refresh_from_db()
        self.assertEqual(self.trip.status, "scheduled")
        self.assertEqual(self.trip.tickets.count(), 1)

    def test_edit_on_full_trip_opens_nothing_more(self, _deliver):
        successor = TransitFactory.trip(route=self.route, hours_ahead=6)
        later = TransitFactory.trip(route=self.route, hours_ahead=10)
        first = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST02")

        TicketService.update_ticket(first.pk, {"is_picked": True})
        successor.refresh_from_db()
        later.refresh_from_db()
        self.assertEqual(successor.status, "available")
        self.assertEqual(later.status, "scheduled")

    def test_no_successor_fails_booking(self, _deliver):
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        with self.assertRaises(NoAvailableSuccessorException):
            TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST02")

        self.trip.refresh_from_db()
        self.assertEqual(self.trip.status, "scheduled")
        self.assertEqual(seat_status(self.trip, "ST02"), "available")
        self.assertEqual(self.trip.tickets.count(), 1)

    @override_settings(ROLLOVER_REQUIRE_SUCCESSOR=False)
    def test_no_successor_tolerated_when_configured(self, _deliver):
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST02")
        self.trip.refresh_from_db()
        self.assertEqual(self.trip.status, "fully_booked")

    def test_deleting_from_full_trip_reopens_it(self, _deliver):
        TransitFactory.trip(route=self.route, hours_ahead=6)
        first = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST02")

        TicketService.delete_ticket(first.pk)
        self.trip.refresh_from_db()
        self.assertEqual(self.trip.status, "available")
        self.assertEqual(seat_status(self.trip, "ST01"), "available")


@mock.patch("tickets.services.TicketService._deliver")
class TicketUpdateTest(TestCase):
    """Test cases for seat changes, status moves and payment."""

    def setUp(self):
        self.trip = TransitFactory.trip(capacity=4)
        self.passenger = TransitFactory.user()

    def test_seat_swap_scenario(self, _deliver):
        """ST01 -> ST02 frees ST01, which another ticket can then take."""
        ticket_a = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        ticket_b = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST03")

        TicketService.update_ticket(ticket_a.pk, {"seat_number": "ST02"})
        self.assertEqual(seat_status(self.trip, "ST01"), "available")
        self.assertEqual(seat_status(self.trip, "ST02"), "reserved")

        ticket_b = TicketService.update_ticket(ticket_b.pk, {"seat_number": "ST01"})
        self.assertEqual(ticket_b.seat_number, "ST01")
        self.assertEqual(seat_status(self.trip, "ST01"), "reserved")
        self.assertEqual(seat_status(self.trip, "ST03"), "available")

    def test_failed_swap_keeps_old_seat(self, _deliver):
        ticket_a = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST02")

        with self.assertRaises(SeatUnavailableException):
            TicketService.update_ticket(ticket_a.pk, {"seat_number": "ST02"})

        ticket_a.refresh_from_db()
        self.assertEqual(ticket_a.seat_number, "ST01")
        self.assertEqual(seat_status(self.trip, "ST01"), "reserved")

    def test_paid_twice_awards_once(self, _deliver):
        ticket = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        TicketService.update_ticket(ticket.pk, {"is_paid": True})
        TicketService.update_ticket(ticket.pk, {"is_paid": True})

        self.assertEqual(PointsHistory.objects.filter(ticket=ticket, type="award").count(), 1)
        self.passenger.refresh_from_db()
        self.assertEqual(self.passenger.total_points, 4)

    def test_confirming_online_ticket_reserves_preferred_seat(self, _deliver):
        ticket = TicketService.book_online(self.passenger, self.trip.pk, preferred_seat="ST04")
        self.assertEqual(seat_status(self.trip, "ST04"), "available")

        ticket = TicketService.update_ticket(ticket.pk, {"status": "confirmed"})
        self.assertEqual(ticket.seat_number, "ST04")
        self.assertTrue(ticket.is_confirmed)
        self.assertEqual(seat_status(self.trip, "ST04"), "reserved")

    def test_confirming_without_seat_rejected(self, _deliver):
        ticket = TicketService.book_online(self.passenger, self.trip.pk)
        with self.assertRaises(InvalidInputException):
            TicketService.update_ticket(ticket.pk, {"status": "confirmed"})

    def test_cancel_releases_seat_and_is_terminal(self, _deliver):
        ticket = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        TicketService.update_ticket(ticket.pk, {"status": "cancelled"})
        self.assertEqual(seat_status(self.trip, "ST01"), "available")

        with self.assertRaises(InvalidTicketTransitionException):
            TicketService.update_ticket(ticket.pk, {"status": "confirmed"})

    def test_confirmed_cannot_return_to_pending(self, _deliver):
        ticket = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        with self.assertRaises(InvalidTicketTransitionException):
            TicketService.update_ticket(ticket.pk, {"status": "pending"})

    def test_unknown_ticket(self, _deliver):
        with self.assertRaises(TicketNotFoundException):
            TicketService.update_ticket(9999, {"is_paid": True})

    def test_messages_sent_after_commit(self, _deliver):
        with self.captureOnCommitCallbacks(execute=True):
            ticket = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        _deliver.assert_called_once()
        user, subject, message, details, sms = _deliver.call_args[0]
        self.assertEqual(user, self.passenger)
        self.assertIn(ticket.ticket_number, message)
        self.assertEqual(details["seat"], "ST01")
        self.assertIn(ticket.ticket_number, sms)

    def test_no_messages_for_failed_booking(self, _deliver):
        TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(SeatUnavailableException):
                TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        self.assertEqual(_deliver.call_count, 0)


@mock.patch("tickets.services.TicketService._deliver")
class TicketDeletionTest(TestCase):

    def setUp(self):
        self.trip = TransitFactory.trip(capacity=4)
        self.passenger = TransitFactory.user()
        self.ticket = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")

    def test_delete_on_scheduled_trip_frees_seat(self, _deliver):
        TicketService.delete_ticket(self.ticket.pk)
        self.assertFalse(Ticket.objects.filter(pk=self.ticket.pk).exists())
        self.assertEqual(seat_status(self.trip, "ST01"), "available")

    def test_delete_after_departure_refused(self, _deliver):
        for departed in ("embarked", "completed"):
            Trip.objects.filter(pk=self.trip.pk).update(status=departed)
            with self.assertRaises(TripAlreadyDepartedException):
                TicketService.delete_ticket(self.ticket.pk)
            self.assertTrue(Ticket.objects.filter(pk=self.ticket.pk).exists())
            self.assertEqual(seat_status(self.trip, "ST01"), "reserved")


@mock.patch("tickets.services.TicketService._deliver")
class ReleaseSeatsAtStopTest(TestCase):

    def setUp(self):
        self.route = TransitFactory.route(stops=("Kasoa", "Winneba"))
        self.kasoa, self.winneba = self.route.stops.order_by("id")
        self.trip = TransitFactory.trip(route=self.route, capacity=4)
        self.passenger = TransitFactory.user()
        self.first = TicketService.create_walk_in_ticket(
            self.passenger, self.trip.pk, "ST01", stop=self.kasoa.pk
        )
        self.second = TicketService.create_walk_in_ticket(
            self.passenger, self.trip.pk, "ST02", stop=self.winneba.pk
        )
        TripLifecycle.transition(self.trip, "embarked")

    def test_release_at_stop(self, _deliver):
        result = TicketService.release_seats_at_stop(self.trip.pk, self.kasoa.pk)
        self.assertEqual(result["released_seats"], ["ST01"])
        self.trip.refresh_from_db()
        self.assertEqual(self.trip.status, "embarked_not_to_capacity")
        self.assertEqual(seat_status(self.trip, "ST01"), "available")
        self.assertEqual(seat_status(self.trip, "ST02"), "reserved")

        self.first.refresh_from_db()
        self.assertEqual(self.first.status, "confirmed")
        self.assertIsNotNone(self.first.alighted_at)

    def test_no_passengers_changes_nothing(self, _deliver):
        TicketService.release_seats_at_stop(self.trip.pk, self.kasoa.pk)
        self.trip.refresh_from_db()
        TripLifecycle.transition(self.trip, "embarked")

        with self.assertRaises(NoPassengersAtStopException):
            TicketService.release_seats_at_stop(self.trip.pk, self.kasoa.pk)

        self.trip.refresh_from_db()
        self.assertEqual(self.trip.status, "embarked")
        self.assertEqual(seat_status(self.trip, "ST02"), "reserved")

    def test_alighted_ticket_keeps_its_seat_label(self, _deliver):
        TicketService.release_seats_at_stop(self.trip.pk, self.kasoa.pk)
        with self.assertRaises(InvalidInputException):
            TicketService.update_ticket(self.first.pk, {"seat_number": "ST03"})

        self.first.refresh_from_db()
        self.assertEqual(self.first.seat_number, "ST01")
        self.assertEqual(seat_status(self.trip, "ST03"), "available")

        ticket = TicketService.update_ticket(self.first.pk, {"is_picked": True})
        self.assertTrue(ticket.is_picked)

    def test_released_seat_can_be_resold(self, _deliver):
        TicketService.release_seats_at_stop(self.trip.pk, self.kasoa.pk)
        ticket = TicketService.create_walk_in_ticket(self.passenger, self.trip.pk, "ST01")
        self.assertEqual(ticket.seat_number, "ST01")


@mock.patch("tickets.services.TicketService._deliver")
class TicketAPITest(APITestCase):
    """Test cases for the tickets API."""

    def setUp(self):
        self.staff = TransitFactory.user(role="staff")
        self.customer = TransitFactory.user()
        self.other = TransitFactory.user()
        self.route = TransitFactory.route()
        self.trip = TransitFactory.trip(route=self.route, capacity=4)
        self.list_url = reverse("ticket-list")

    def test_staff_sells_walk_in(self, _deliver):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post(
            self.list_url,
            {"trip": self.trip.pk, "seat_number": "st01", "user": self.customer.pk},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["seat_number"], "ST01")
        self.assertEqual(response.data["user"], self.customer.pk)
        self.assertEqual(response.data["served_by"], self.staff.pk)

    def test_taken_seat_is_400(self, _deliver):
        self.client.force_authenticate(user=self.staff)
        payload = {"trip": self.trip.pk, "seat_number": "ST01"}
        self.client.post(self.list_url, payload, format="json")
        response = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["success"], False)

    def test_customer_cannot_sell_walk_in(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(
            self.list_url, {"trip": self.trip.pk, "seat_number": "ST01"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_customer_books_online(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(
            reverse("ticket-book"),
            {"trip": self.trip.pk, "preferred_seat": "ST03"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["ticket_type"], "online")
        self.assertEqual(seat_status(self.trip, "ST03"), "available")

    def test_book_unknown_trip_is_404(self, _deliver):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(reverse("ticket-book"), {"trip": 9999}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_customer_sees_only_own_tickets(self, _deliver):
        TicketService.book_online(self.customer, self.trip.pk)
        TicketService.book_online(self.other, self.trip.pk)
        self.client.force_authenticate(user=self.customer)

        response = self.client.get(self.list_url)
        self.assertEqual(len(response.data), 1)

        response = self.client.get(reverse("ticket-by-user", kwargs={"user_id": self.other.pk}))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_user_tickets_search(self, _deliver):
        ticket = TicketService.book_online(self.customer, self.trip.pk)
        self.client.force_authenticate(user=self.staff)
        url = reverse("ticket-by-user", kwargs={"user_id": self.customer.pk})

        response = self.client.get(url, {"search": "cape"})
        self.assertEqual([t["ticket_number"] for t in response.data], [ticket.ticket_number])
        response = self.client.get(url, {"search": "kumasi"})
        self.assertEqual(response.data, [])

    def test_customer_cancels_but_cannot_mark_paid(self, _deliver):
        ticket = TicketService.book_online(self.customer, self.trip.pk)
        self.client.force_authenticate(user=self.customer)
        url = reverse("ticket-detail", args=[ticket.pk])

        response = self.client.patch(url, {"is_paid": True}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.patch(url, {"status": "cancelled"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "cancelled")

    def test_delete_after_departure_is_400(self, _deliver):
        ticket = TicketService.create_walk_in_ticket(self.customer, self.trip.pk, "ST01")
        Trip.objects.filter(pk=self.trip.pk).update(status="embarked")
        self.client.force_authenticate(user=self.staff)
        response = self.client.delete(reverse("ticket-detail", args=[ticket.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_seats_at_stop(self, _deliver):
        stop = self.route.stops.first()
        TicketService.create_walk_in_ticket(self.customer, self.trip.pk, "ST01", stop=stop)
        TripLifecycle.transition(self.trip, "embarked")
        self.client.force_authenticate(user=self.staff)
        url = reverse(
            "ticket-update-seats", kwargs={"trip_id": self.trip.pk, "stop_id": stop.pk}
        )

        response = self.client.put(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "embarked_not_to_capacity")

        response = self.client.put(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class TicketNotificationDeliveryTest(TestCase):
    """End-to-end sinks with the SMS gateway patched out."""

    @mock.patch("notifications.services.NotificationService.send_sms")
    def test_delivery_stores_notification_and_email(self, send_sms):
        from django.core import mail

        trip = TransitFactory.trip(capacity=4)
        passenger = TransitFactory.user()
        with self.captureOnCommitCallbacks(execute=True):
            ticket = TicketService.book_online(passenger, trip.pk)

        self.assertTrue(Notification.objects.filter(user=passenger, subject="Trip Booked").exists())
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(ticket.ticket_number, mail.outbox[0].body)
        send_sms.assert_called_once()
        self.assertEqual(send_sms.call_args[0][0], passenger.phone)
