"""
Trip lifecycle, seat ledger and capacity rollover.

Every multi-step mutation here runs inside ``transaction.atomic`` with the
trip row locked, and SMS side effects are deferred to ``on_commit`` so a
rolled-back change never messages anyone.
"""
from functools import partial
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from .models import Trip, TripSeat, TripCodeCounter
from notifications.services import NotificationService
from exceptions.handlers import (
    BusCapacityExceededException,
    InvalidInputException,
    InvalidTripTransitionException,
    NoAvailableSuccessorException,
    SchedulingConflictException,
    SeatUnavailableException,
)
from utils.constants import SeatMessage, TripMessage, TripStatus
from utils.validators import FleetValidators, RouteValidators, TripValidators
import logging

logger = logging.getLogger("trips")


TRIP_TRANSITIONS = {
    TripStatus.SCHEDULED: {
        TripStatus.AVAILABLE,
        TripStatus.FULLY_BOOKED,
        TripStatus.EMBARKED,
        TripStatus.EMBARKED_NOT_TO_CAPACITY,
    },
    TripStatus.AVAILABLE: {
        TripStatus.SCHEDULED,
        TripStatus.FULLY_BOOKED,
        TripStatus.EMBARKED,
        TripStatus.EMBARKED_NOT_TO_CAPACITY,
    },
    TripStatus.FULLY_BOOKED: {
        TripStatus.AVAILABLE,
        TripStatus.EMBARKED,
        TripStatus.EMBARKED_NOT_TO_CAPACITY,
    },
    TripStatus.EMBARKED: {
        TripStatus.EMBARKED_NOT_TO_CAPACITY,
        TripStatus.COMPLETED,
    },
    TripStatus.EMBARKED_NOT_TO_CAPACITY: {
        TripStatus.EMBARKED,
        TripStatus.COMPLETED,
    },
    TripStatus.COMPLETED: set(),
}


class SeatLedger:
    """
    Per-seat availability for a trip. ``reserve`` is the only way a seat
    becomes reserved and it is a single conditional UPDATE.
    """

    @staticmethod
    def seat_labels(capacity):
        """
        Returns:
            list[str]: ST01, ST02, ... up to ``capacity``
        """
        return [f"ST{index:02d}" for index in range(1, capacity + 1)]

    @staticmethod
    def create_seats(trip, capacity):
        seats = [
            TripSeat(trip=trip, seat_number=label, status="available")
            for label in SeatLedger.seat_labels(capacity)
        ]
        TripSeat.objects.bulk_create(seats)
        logger.info(f"Seat ledger created for {trip.trip_code}: {capacity} seats")
        return len(seats)

    @staticmethod
    def reserve(trip, seat_number):
        """
        Flips one seat from available to reserved.

        Raises:
            SeatUnavailableException: If the seat does not exist or is already reserved
        """
        updated = TripSeat.objects.filter(
            trip=trip, seat_number=seat_number, status="available"
        ).update(status="reserved", updated_at=timezone.now())
        if not updated:
            logger.warning(f"Seat {seat_number} unavailable on {trip.trip_code}")
            raise SeatUnavailableException(
                SeatMessage.SEAT_UNAVAILABLE_LABEL.format(seat_number=seat_number)
            )
        logger.info(f"Seat {seat_number} reserved on {trip.trip_code}")

    @staticmethod
    def release(trip, seat_number):
        """
        Returns:
            bool: False when the trip has no seat with this label
        """
        updated = TripSeat.objects.filter(trip=trip, seat_number=seat_number).update(
            status="available", updated_at=timezone.now()
        )
        if updated:
            logger.info(f"Seat {seat_number} released on {trip.trip_code}")
        else:
            logger.warning(f"Seat {seat_number} not found on {trip.trip_code}, nothing released")
        return bool(updated)

    @staticmethod
    def release_many(trip, seat_numbers):
        if not seat_numbers:
            return 0
        return TripSeat.objects.filter(trip=trip, seat_number__in=seat_numbers).update(
            status="available", updated_at=timezone.now()
        )

    @staticmethod
    def recreate_for_capacity(trip, capacity):
        """
        Drops every entry of the trip and builds a fresh, fully available
        ledger. Callers re-reserve seats still held by tickets.
        """
        TripSeat.objects.filter(trip=trip).delete()
        return SeatLedger.create_seats(trip, capacity)


class TripCodeGenerator:

    @staticmethod
    def next_code(today=None):
        """
        Allocates the next ``TRIP-YYYYMMDD-NNNN`` code.

        The sequence comes from a row-locked counter. With
        TRIP_CODE_SEQUENCE_SCOPE="daily" each day has its own counter,
        otherwise one counter runs across days.
        """
        today = today or timezone.localdate()
        day_key = today.strftime("%Y%m%d")
        scope = day_key if settings.TRIP_CODE_SEQUENCE_SCOPE == "daily" else "global"

        with transaction.atomic():
            counter, _ = TripCodeCounter.objects.select_for_update().get_or_create(scope=scope)
            counter.last_value += 1
            counter.save(update_fields=["last_value"])

        return f"TRIP-{day_key}-{counter.last_value:04d}"


class TripLifecycle:
    """
    The one place trip status changes.
    """

    @staticmethod
    def can_transition(current, target):
        return current == target or target in TRIP_TRANSITIONS.get(current, set())

    @staticmethod
    def transition(trip, target):
        """
        Moves ``trip`` to ``target`` and saves it. Setting the current status
        again is a no-op.

        Returns:
            bool: True if the status changed

        Raises:
            InvalidTripTransitionException: If the move is not in the table
        """
        current = trip.status
        if current == target:
            return False
        if target not in TRIP_TRANSITIONS:
            raise InvalidInputException(f"Unknown trip status: {target}.")
        if not TripLifecycle.can_transition(current, target):
            logger.warning(f"Rejected trip transition {trip.trip_code}: {current} -> {target}")
            raise InvalidTripTransitionException(
                TripMessage.INVALID_TRANSITION.format(current=current, target=target)
            )

        trip.status = target
        fields = ["status", "updated_at"]
        if target == TripStatus.COMPLETED and trip.arrival_time is None:
            trip.arrival_time = timezone.now()
            fields.append("arrival_time")
        trip.save(update_fields=fields)
        logger.info(f"Trip {trip.trip_code}: {current} -> {target}")
        return True


class CapacityRollover:
    """
    Keeps trip status in line with seat-holding tickets and opens the next
    trip on the route when one fills up.
    """

    @staticmethod
    def seat_holding_count(trip):
        return trip.tickets.seat_holding().count()

    @staticmethod
    def promote_successor(trip, require_successor):
        """
        Opens the earliest later trip on the same route that is still
        scheduled by moving it to available. Trips that are already
        available do not count as a successor.

        Returns:
            Trip | None: The promoted successor, or None when there is none

        Raises:
            NoAvailableSuccessorException: If there is none and ``require_successor``
        """
        successor = (
            Trip.objects.select_for_update()
            .filter(
                route_id=trip.route_id,
                embark_time__gt=trip.embark_time,
                status=TripStatus.SCHEDULED,
            )
            .order_by("embark_time", "id")
            .first()
        )
        if successor is None:
            if require_successor:
                logger.warning(f"No successor for full trip {trip.trip_code} on route {trip.route_id}")
                raise NoAvailableSuccessorException()
            logger.warning(
                f"Trip {trip.trip_code} is full and route {trip.route_id} has no scheduled trip to open"
            )
            return None

        TripLifecycle.transition(successor, TripStatus.AVAILABLE)
        logger.info(f"Trip {successor.trip_code} opened after {trip.trip_code} filled up")
        return successor

    @staticmethod
    def has_open_successor(trip):
        return Trip.objects.filter(
            route_id=trip.route_id,
            embark_time__gt=trip.embark_time,
            status=TripStatus.AVAILABLE,
        ).exists()

    @staticmethod
    def evaluate_saturation(trip, require_successor=None):
        """
        Re-checks ``trip`` against its bus capacity.

        A bookable trip that reaches capacity becomes fully_booked and the
        next scheduled trip on the route is opened; ``require_successor``
        decides whether a missing one fails the change. A trip that is
        already fully booked opens nothing more. A fully booked trip that
        drops below capacity reopens as available.

        Args:
            trip (Trip): Trip locked by the caller's transaction
            require_successor (bool, optional): Defaults to ROLLOVER_REQUIRE_SUCCESSOR

        Returns:
            dict: confirmed, capacity, status and the promoted successor code
        """
        if require_successor is None:
            require_successor = settings.ROLLOVER_REQUIRE_SUCCESSOR

        capacity = trip.bus.capacity
        confirmed = CapacityRollover.seat_holding_count(trip)
        successor = None

        if confirmed >= capacity:
            if trip.status in TripStatus.BOOKABLE:
                TripLifecycle.transition(trip, TripStatus.FULLY_BOOKED)
                successor = CapacityRollover.promote_successor(trip, require_successor)
        elif trip.status == TripStatus.FULLY_BOOKED:
            TripLifecycle.transition(trip, TripStatus.AVAILABLE)

        return {
            "trip": trip.trip_code,
            "confirmed": confirmed,
            "capacity": capacity,
            "status": trip.status,
            "successor": successor.trip_code if successor else None,
        }

    @staticmethod
    def rebalance_route(route):
        """
        Sweeps every bookable or full trip on ``route`` in departure order,
        saturating full trips, reopening trips with free capacity and
        opening successors. A trip that was already full only gets a
        successor when no later trip on the route is open. Never raises for
        a missing successor, and a second run right after the first changes
        nothing.

        Returns:
            dict: route id plus the codes of trips saturated, reopened and
            promoted, and full trips left without a successor
        """
        summary = {
            "route": route.pk,
            "saturated": [],
            "reopened": [],
            "promoted": [],
            "without_successor": [],
        }
        watched = (TripStatus.SCHEDULED, TripStatus.AVAILABLE, TripStatus.FULLY_BOOKED)

        with transaction.atomic():
            trip_ids = list(
                Trip.objects.select_for_update()
                .filter(route=route, status__in=watched)
                .order_by("embark_time", "id")
                .values_list("id", flat=True)
            )
            for trip_id in trip_ids:
                trip = Trip.objects.select_related("bus").get(pk=trip_id)
                if trip.status not in watched:
                    continue
                before = trip.status
                result = CapacityRollover.evaluate_saturation(trip, require_successor=False)
                successor = result["successor"]

                if before != TripStatus.FULLY_BOOKED and trip.status == TripStatus.FULLY_BOOKED:
                    summary["saturated"].append(trip.trip_code)
                    if successor is None:
                        summary["without_successor"].append(trip.trip_code)
                elif before == TripStatus.FULLY_BOOKED and trip.status == TripStatus.AVAILABLE:
                    summary["reopened"].append(trip.trip_code)
                elif trip.status == TripStatus.FULLY_BOOKED and not CapacityRollover.has_open_successor(trip):
                    promoted = CapacityRollover.promote_successor(trip, require_successor=False)
                    if promoted is None:
                        summary["without_successor"].append(trip.trip_code)
                    else:
                        successor = promoted.trip_code

                if successor is not None:
                    summary["promoted"].append(successor)

        logger.info(f"Route {route.pk} rebalanced: {summary}")
        return summary


class TripService:

    @staticmethod
    def create_trip(bus_id, driver_id, route_id, embark_time, is_scheduled=True, status=None):
        """
        Schedules a trip and builds its seat ledger.

        Raises:
            NotFoundException: If the bus, driver or route does not exist
            SchedulingConflictException: If the same bus and driver already
                leave at ``embark_time``
        """
        bus = FleetValidators.get_bus(bus_id)
        driver = FleetValidators.get_driver(driver_id)
        route = RouteValidators.get_route(route_id)
        status = TripValidators.validate_initial_status(status)

        with transaction.atomic():
            if Trip.objects.filter(bus=bus, driver=driver, embark_time=embark_time).exists():
                logger.warning(
                    f"Scheduling conflict: bus {bus.bus_number}, driver {driver.pk} at {embark_time}"
                )
                raise SchedulingConflictException()

            trip = Trip.objects.create(
                trip_code=TripCodeGenerator.next_code(),
                bus=bus,
                driver=driver,
                route=route,
                embark_time=embark_time,
                is_scheduled=is_scheduled,
                status=status,
            )
            SeatLedger.create_seats(trip, bus.capacity)

        logger.info(f"Trip created: {trip.trip_code} on route {route} with bus {bus.bus_number}")
        return trip

    @staticmethod
    def reassign_bus(trip, new_bus_id):
        """
        Moves ``trip`` to another bus and rebuilds its seat ledger.

        Seats held by confirmed tickets are reserved again on the new ledger.
        If any held label does not exist on the new bus nothing changes.

        Raises:
            NotFoundException: If the bus does not exist
            BusCapacityExceededException: If the new bus already carries as
                many trips as it has seats, or a held seat would be lost
        """
        bus = FleetValidators.get_bus(new_bus_id)

        with transaction.atomic():
            trip = TripValidators.get_trip(trip.pk, lock=True)
            if bus.pk == trip.bus_id:
                return trip

            trips_on_bus = Trip.objects.filter(bus=bus).exclude(pk=trip.pk).count()
            if trips_on_bus >= bus.capacity:
                logger.warning(
                    f"Bus {bus.bus_number} rejected for {trip.trip_code}: {trips_on_bus} trips, capacity {bus.capacity}"
                )
                raise BusCapacityExceededException()

            labels = set(SeatLedger.seat_labels(bus.capacity))
            held = list(
                trip.tickets.seat_holding()
                .exclude(seat_number__isnull=True)
                .exclude(seat_number="")
                .values_list("ticket_number", "seat_number")
            )
            for ticket_number, seat_number in held:
                if seat_number not in labels:
                    raise BusCapacityExceededException(
                        TripMessage.SEAT_LABEL_MISSING_ON_BUS.format(
                            seat_number=seat_number, ticket_number=ticket_number
                        )
                    )

            old_bus_id = trip.bus_id
            trip.bus = bus
            trip.save(update_fields=["bus", "updated_at"])
            SeatLedger.recreate_for_capacity(trip, bus.capacity)
            for _, seat_number in held:
                SeatLedger.reserve(trip, seat_number)
            CapacityRollover.evaluate_saturation(trip, require_successor=False)

        logger.info(
            f"Trip {trip.trip_code} moved from bus {old_bus_id} to {bus.bus_number}; {len(held)} seats carried over"
        )
        return trip

    @staticmethod
    def update_trip_status(trip, new_status):
        """
        Changes trip status through the transition table. Entering embarked
        or completed texts every distinct ticket holder after commit.
        """
        with transaction.atomic():
            trip = TripValidators.get_trip(trip.pk, lock=True)
            changed = TripLifecycle.transition(trip, new_status)

            if changed and new_status in TripStatus.ANNOUNCED:
                phones = sorted(
                    set(
                        trip.tickets.exclude(status="cancelled")
                        .exclude(user__phone="")
                        .values_list("user__phone", flat=True)
                    )
                )
                message = TripMessage.STATUS_SMS.format(
                    trip_code=trip.trip_code, status=new_status.replace("_", " ")
                )
                transaction.on_commit(
                    partial(NotificationService.send_bulk_sms, phones, message)
                )
                logger.info(f"Trip {trip.trip_code} {new_status}: {len(phones)} passenger(s) to notify")

        return trip

    @staticmethod
    def update_trip(trip_id, fields):
        """
        Operator edit of a trip: driver, route, embark/arrival times, the
        scheduled flag, a bus change and a status change, in one transaction.
        """
        with transaction.atomic():
            trip = TripValidators.get_trip(trip_id, lock=True)

            if "bus" in fields and fields["bus"] is not None:
                trip = TripService.reassign_bus(trip, fields["bus"])

            if "driver" in fields and fields["driver"] is not None:
                trip.driver = FleetValidators.get_driver(fields["driver"])
            if "route" in fields and fields["route"] is not None:
                route = RouteValidators.get_route(fields["route"])
                if route.pk != trip.route_id and trip.tickets.exists():
                    raise InvalidInputException(TripMessage.ROUTE_CHANGE_WITH_TICKETS)
                trip.route = route
            for name in ("embark_time", "arrival_time", "is_scheduled"):
                if name in fields:
                    setattr(trip, name, fields[name])

            clash = (
                Trip.objects.filter(
                    bus_id=trip.bus_id, driver_id=trip.driver_id, embark_time=trip.embark_time
                )
                .exclude(pk=trip.pk)
                .exists()
            )
            if clash:
                raise SchedulingConflictException()
            trip.save()

            if fields.get("status"):
                trip = TripService.update_trip_status(trip, fields["status"])

        logger.info(f"Trip updated: {trip.trip_code} fields={sorted(fields)}")
        return trip

    @staticmethod
    def delete_trip(trip_id):
        """
        Removes a trip and its seat ledger. Trips with tickets are kept.
        """
        with transaction.atomic():
            trip = TripValidators.get_trip(trip_id, lock=True)
            if trip.tickets.exists():
                raise InvalidInputException(TripMessage.TRIP_HAS_TICKETS)
            code = trip.trip_code
            trip.delete()
        logger.info(f"Trip deleted: {code}")
