from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django.db.models import Count, Q
from .models import Trip
from .serializers import (
    TripSerializer,
    TripCreateSerializer,
    TripUpdateSerializer,
    TripSeatSerializer,
)
from .services import TripService
from utils.permission_helpers import ReadAuthenticatedWriteStaffMixin
from utils.queryset_helpers import (
    FilterableQuerysetMixin,
    SearchableQuerysetMixin,
    DateRangeQuerysetMixin,
)
from utils.validators import FleetValidators, OwnershipValidators, RouteValidators
import logging

logger = logging.getLogger("trips")


class TripViewSet(
    ReadAuthenticatedWriteStaffMixin,
    SearchableQuerysetMixin,
    FilterableQuerysetMixin,
    DateRangeQuerysetMixin,
    viewsets.ModelViewSet,
):
    """
    ViewSet for scheduling and operating trips.

    Reads are open to any signed-in user; scheduling, edits, status changes
    and deletion are for staff and admins. List filters: ``?status=``,
    ``?search=`` (code, origin, destination, bus number) and
    ``?start_date=``/``?end_date=`` on embark time.
    """

    serializer_class = TripSerializer
    filter_fields = ["status"]
    search_fields = ["trip_code", "route__origin", "route__destination", "bus__bus_number"]
    date_field = "embark_time"

    def get_queryset(self):
        self.queryset = (
            Trip.objects.select_related("bus", "driver__user", "route")
            .annotate(
                ticket_count=Count(
                    "tickets", filter=~Q(tickets__status="cancelled"), distinct=True
                ),
                available_seats=Count(
                    "seats", filter=Q(seats__status="available"), distinct=True
                ),
            )
            .order_by("embark_time", "id")
        )
        return super().get_queryset()

    def _respond(self, trip, code=status.HTTP_200_OK):
        trip = self.get_queryset().get(pk=trip.pk)
        return Response(TripSerializer(trip).data, status=code)

    def create(self, request, *args, **kwargs):
        serializer = TripCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        trip = TripService.create_trip(
            bus_id=data["bus"],
            driver_id=data["driver"],
            route_id=data["route"],
            embark_time=data["embark_time"],
            is_scheduled=data["is_scheduled"],
            status=data.get("status"),
        )
        logger.info(f"Trip {trip.trip_code} scheduled by {request.user.username}")
        return self._respond(trip, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        serializer = TripUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        trip = TripService.update_trip(kwargs["pk"], serializer.validated_data)
        logger.info(f"Trip {trip.trip_code} updated by {request.user.username}")
        return self._respond(trip)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        TripService.delete_trip(kwargs["pk"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def seats(self, request, pk=None):
        """Seat ledger of one trip."""
        trip = self.get_object()
        return Response({
            "trip_code": trip.trip_code,
            "seats": TripSeatSerializer(trip.seats.order_by("id"), many=True).data,
        })

    @action(detail=False, methods=["get"], url_path=r"route/(?P<route_id>\d+)")
    def by_route(self, request, route_id=None):
        """Trips on a route, optionally limited by start_date/end_date."""
        route = RouteValidators.get_route(route_id)
        trips = self.get_queryset().filter(route=route)
        return Response(TripSerializer(trips, many=True).data)

    @action(detail=False, methods=["get"], url_path=r"bus/(?P<bus_id>\d+)")
    def by_bus(self, request, bus_id=None):
        bus = FleetValidators.get_bus(bus_id)
        trips = self.get_queryset().filter(bus=bus)
        return Response(TripSerializer(trips, many=True).data)

    @action(detail=False, methods=["get"], url_path=r"user/(?P<user_id>\d+)")
    def by_user(self, request, user_id=None):
        """Trips the user holds tickets on. Customers may only ask about themselves."""
        OwnershipValidators.validate_self_or_staff(request.user, user_id)
        trips = self.get_queryset().filter(tickets__user_id=user_id).distinct()
        return Response(TripSerializer(trips, many=True).data)
