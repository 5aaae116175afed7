"""
Ticket operations.

Each mutation locks the trip row first, then the ticket, and changes seats
only through ``SeatLedger``. Notifications, email and SMS are queued with
``transaction.on_commit`` and never fire for a rolled-back change.
"""
from functools import partial
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from .models import Ticket
from trips.services import CapacityRollover, SeatLedger, TripLifecycle
from rewards.services import RewardService
from notifications.services import NotificationService
from exceptions.handlers import (
    InvalidInputException,
    InvalidTicketTransitionException,
    NoPassengersAtStopException,
    TripAlreadyDepartedException,
)
from utils.constants import TicketMessage, TripStatus
from utils.ticket_helpers import TicketHelpers
from utils.validators import RouteValidators, TicketValidators, TripValidators
import logging

logger = logging.getLogger("tickets")


TICKET_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"cancelled"},
    "cancelled": set(),
}

SIMPLE_FIELDS = (
    "recipient_name",
    "recipient_relationship",
    "preferred_seat",
    "is_confirmed",
    "is_picked",
    "is_paid",
)


class TicketService:

    @staticmethod
    def _resolve_stop(stop, trip):
        if stop is None or stop == "":
            return None
        if not hasattr(stop, "route_id"):
            stop = RouteValidators.get_stop(stop)
        return TicketValidators.validate_stop_on_route(stop, trip)

    @staticmethod
    def _queue_messages(ticket, subject, message, sms):
        """
        Queues the in-app notification, ticket email and SMS for after commit.
        """
        context = TicketHelpers.message_context(ticket)
        transaction.on_commit(
            partial(
                TicketService._deliver,
                ticket.user,
                subject,
                message.format(**context),
                TicketHelpers.email_details(ticket),
                sms.format(**context),
            )
        )

    @staticmethod
    def _deliver(user, subject, message, details, sms):
        NotificationService.notify(user, subject, message)
        NotificationService.send_ticket_email(user.email, details)
        NotificationService.send_sms(user.phone, sms)

    @staticmethod
    def create_walk_in_ticket(
        user,
        trip_id,
        seat_number,
        stop=None,
        recipient_name=None,
        recipient_relationship=None,
        is_paid=False,
        is_confirmed=False,
        served_by=None,
    ):
        """
        Sells a seat at the counter: reserves ``seat_number``, stores a
        confirmed walk-in ticket and re-checks the trip against capacity.

        Raises:
            TripNotFoundException: If the trip does not exist
            SeatUnavailableException: If the seat is missing or taken
            NoAvailableSuccessorException: If this ticket fills the trip and
                no later trip on the route can take over
        """
        if not seat_number:
            raise InvalidInputException(TicketMessage.SEAT_NUMBER_REQUIRED)

        with transaction.atomic():
            trip = TripValidators.get_trip(trip_id, lock=True)
            TicketValidators.validate_trip_open(trip)
            stop = TicketService._resolve_stop(stop, trip)

            SeatLedger.reserve(trip, seat_number)
            ticket = Ticket.objects.create(
                ticket_number=TicketHelpers.generate_unique_ticket_number(),
                user=user,
                recipient_name=recipient_name,
                recipient_relationship=recipient_relationship,
                trip=trip,
                stop=stop,
                seat_number=seat_number,
                is_paid=is_paid,
                status="confirmed",
                ticket_type="walkin",
                is_confirmed=is_confirmed,
                served_by=served_by,
            )
            CapacityRollover.evaluate_saturation(trip)

            if is_paid:
                RewardService.award(user, trip, ticket)

            TicketService._queue_messages(
                ticket,
                TicketMessage.CREATED_SUBJECT,
                TicketMessage.CREATED_MESSAGE,
                TicketMessage.CREATED_SMS,
            )

        logger.info(f"Walk-in ticket {ticket.ticket_number} created on {trip.trip_code} seat {seat_number}")
        return ticket

    @staticmethod
    def book_online(
        user,
        trip_id,
        preferred_seat=None,
        stop=None,
        recipient_name=None,
        recipient_relationship=None,
    ):
        """
        Stores a pending online ticket. No seat is reserved until the
        ticket is confirmed through ``update_ticket``.
        """
        with transaction.atomic():
            trip = TripValidators.get_trip(trip_id, lock=True)
            TicketValidators.validate_trip_open(trip)
            stop = TicketService._resolve_stop(stop, trip)

            ticket = Ticket.objects.create(
                ticket_number=TicketHelpers.generate_unique_ticket_number(),
                user=user,
                recipient_name=recipient_name,
                recipient_relationship=recipient_relationship,
                trip=trip,
                stop=stop,
                preferred_seat=preferred_seat or None,
                status="pending",
                ticket_type="online",
            )
            TicketService._queue_messages(
                ticket,
                TicketMessage.BOOKED_SUBJECT,
                TicketMessage.BOOKED_MESSAGE,
                TicketMessage.BOOKED_SMS,
            )

        logger.info(f"Online ticket {ticket.ticket_number} booked on {trip.trip_code} by user {user.pk}")
        return ticket

    @staticmethod
    def _change_seat(ticket, trip, new_seat):
        """
        Moves a seat-holding ticket to ``new_seat``. The old seat is only
        released inside the caller's transaction, so a failed reserve leaves
        the ticket on its old seat.
        """
        if new_seat == ticket.seat_number:
            return
        if not new_seat:
            raise InvalidInputException(TicketMessage.SEAT_REQUIRED_TO_CONFIRM)
        old_seat = ticket.seat_number
        if old_seat:
            SeatLedger.release(trip, old_seat)
        SeatLedger.reserve(trip, new_seat)
        ticket.seat_number = new_seat
        logger.info(f"Ticket {ticket.ticket_number} moved from {old_seat} to {new_seat}")

    @staticmethod
    def update_ticket(ticket_id, fields):
        """
        Applies an operator or customer edit to a ticket.

        Status follows pending -> confirmed | cancelled and
        confirmed -> cancelled. Confirming reserves the requested (or
        preferred) seat, cancelling frees it, and a seat change on a
        confirmed ticket swaps seats atomically. Points are awarded the
        first time the ticket becomes paid.

        Raises:
            TicketNotFoundException: If the ticket does not exist
            TripNotFoundException: If its trip does not exist
            InvalidTicketTransitionException: If the status move is illegal
            SeatUnavailableException: If the requested seat is missing or taken
        """
        trip_id = TicketValidators.get_ticket(ticket_id).trip_id

        with transaction.atomic():
            trip = TripValidators.get_trip(trip_id, lock=True)
            ticket = TicketValidators.get_ticket(ticket_id, lock=True)
            was_paid = ticket.is_paid
            current = ticket.status
            target = fields.get("status") or current

            if target != current and target not in TICKET_TRANSITIONS.get(current, set()):
                raise InvalidTicketTransitionException(
                    TicketMessage.INVALID_TRANSITION.format(current=current, target=target)
                )

            for name in SIMPLE_FIELDS:
                if name in fields:
                    setattr(ticket, name, fields[name])
            if "stop" in fields:
                ticket.stop = TicketService._resolve_stop(fields["stop"], trip)
            new_seat = fields["seat_number"] if "seat_number" in fields else ticket.seat_number

            if target == "cancelled":
                if current != "cancelled" and ticket.holds_seat:
                    SeatLedger.release(trip, ticket.seat_number)
                ticket.status = "cancelled"
            elif target == "confirmed" and current == "pending":
                seat = new_seat or ticket.preferred_seat
                if not seat:
                    raise InvalidInputException(TicketMessage.SEAT_REQUIRED_TO_CONFIRM)
                SeatLedger.reserve(trip, seat)
                ticket.seat_number = seat
                ticket.status = "confirmed"
                ticket.is_confirmed = True
            elif ticket.holds_seat:
                TicketService._change_seat(ticket, trip, new_seat)
            elif ticket.alighted_at and new_seat != ticket.seat_number:
                raise InvalidInputException(TicketMessage.SEAT_CHANGE_AFTER_ALIGHTING)
            else:
                ticket.seat_number = new_seat

            ticket.save()
            CapacityRollover.evaluate_saturation(trip)

            if not was_paid and ticket.is_paid:
                RewardService.award(ticket.user, trip, ticket)

            TicketService._queue_messages(
                ticket,
                TicketMessage.UPDATED_SUBJECT,
                TicketMessage.UPDATED_MESSAGE,
                TicketMessage.UPDATED_SMS,
            )

        logger.info(f"Ticket {ticket.ticket_number} updated: fields={sorted(fields)} status={ticket.status}")
        return ticket

    @staticmethod
    def delete_ticket(ticket_id):
        """
        Hard-deletes a ticket and frees its seat. Tickets on trips that have
        embarked or completed are kept.

        Raises:
            TripAlreadyDepartedException: If the trip is embarked or completed
        """
        trip_id = TicketValidators.get_ticket(ticket_id).trip_id

        with transaction.atomic():
            trip = TripValidators.get_trip(trip_id, lock=True)
            ticket = TicketValidators.get_ticket(ticket_id, lock=True)
            if trip.status in TripStatus.DEPARTED:
                logger.warning(f"Refused to delete {ticket.ticket_number}: trip {trip.trip_code} is {trip.status}")
                raise TripAlreadyDepartedException()

            if ticket.holds_seat:
                SeatLedger.release(trip, ticket.seat_number)
            number = ticket.ticket_number
            ticket.delete()
            CapacityRollover.evaluate_saturation(trip, require_successor=False)

        logger.info(f"Ticket {number} deleted from {trip.trip_code}")

    @staticmethod
    def release_seats_at_stop(trip_id, stop_id):
        """
        Frees the seats of every confirmed passenger alighting at a stop and
        marks the trip embarked_not_to_capacity, all or nothing.

        Returns:
            dict: trip code, stop name, released seat labels and trip status

        Raises:
            NoPassengersAtStopException: If nobody on board alights there
        """
        with transaction.atomic():
            trip = TripValidators.get_trip(trip_id, lock=True)
            stop = RouteValidators.get_stop(stop_id)

            tickets = list(
                trip.tickets.seat_holding().filter(stop=stop).select_for_update()
            )
            if not tickets:
                logger.warning(f"No passengers alight at {stop.stop_name} on {trip.trip_code}")
                raise NoPassengersAtStopException()

            labels = [ticket.seat_number for ticket in tickets if ticket.seat_number]
            SeatLedger.release_many(trip, labels)
            now = timezone.now()
            Ticket.objects.filter(pk__in=[ticket.pk for ticket in tickets]).update(
                alighted_at=now, updated_at=now
            )
            TripLifecycle.transition(trip, TripStatus.EMBARKED_NOT_TO_CAPACITY)

        logger.info(f"{len(labels)} seat(s) released at {stop.stop_name} on {trip.trip_code}")
        return {
            "trip_code": trip.trip_code,
            "stop": stop.stop_name,
            "released_seats": labels,
            "status": trip.status,
            "message": TicketMessage.SEATS_RELEASED.format(count=len(labels)),
        }

    @staticmethod
    def _base_queryset():
        return Ticket.objects.select_related(
            "user", "trip__route", "trip__bus", "stop", "served_by"
        )

    @staticmethod
    def list_for_user(user, search=None):
        """
        A user's tickets, newest first. ``search`` matches the ticket number
        and the route origin or destination.
        """
        tickets = TicketService._base_queryset().filter(user=user)
        if search:
            tickets = tickets.filter(
                Q(ticket_number__icontains=search)
                | Q(trip__route__origin__icontains=search)
                | Q(trip__route__destination__icontains=search)
            )
        return tickets

    @staticmethod
    def list_tickets(search=None):
        """
        Every ticket, for operators. ``search`` matches the ticket number,
        holder name, username, email and recipient name.
        """
        tickets = TicketService._base_queryset()
        if search:
            tickets = tickets.filter(
                Q(ticket_number__icontains=search)
                | Q(user__username__icontains=search)
                | Q(user__first_name__icontains=search)
                | Q(user__last_name__icontains=search)
                | Q(user__email__icontains=search)
                | Q(recipient_name__icontains=search)
            )
        return tickets
