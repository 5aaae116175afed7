from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from .serializers import (
    TicketSerializer,
    WalkInTicketSerializer,
    OnlineBookingSerializer,
    TicketUpdateSerializer,
)
from .services import TicketService
from utils.permission_helpers import IsStaffOrAdmin
from utils.validators import OwnershipValidators, UserFieldValidators
from utils.constants import GeneralMessage, TicketMessage
from exceptions.handlers import PermissionDeniedException
import logging

logger = logging.getLogger("tickets")

# Fields only the counter may change
STAFF_ONLY_FIELDS = ("seat_number", "is_paid", "is_confirmed", "is_picked")


class TicketViewSet(viewsets.ModelViewSet):
    """
    ViewSet for selling, booking and managing tickets.

    Staff sell walk-in tickets, edit any ticket and release seats at stops.
    Customers book online, see their own tickets and may cancel them.
    """

    serializer_class = TicketSerializer
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action in ("create", "destroy", "update_seats"):
            return [IsStaffOrAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        search = self.request.query_params.get("search")
        if self.request.user.is_staff:
            return TicketService.list_tickets(search)
        return TicketService.list_for_user(self.request.user, search)

    def create(self, request, *args, **kwargs):
        """
        Sells a walk-in ticket with a reserved seat.
        """
        serializer = WalkInTicketSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        passenger = request.user
        if data.get("user"):
            passenger = UserFieldValidators.get_user_or_404(data["user"])

        ticket = TicketService.create_walk_in_ticket(
            user=passenger,
            trip_id=data["trip"],
            seat_number=data["seat_number"],
            stop=data.get("stop"),
            recipient_name=data.get("recipient_name") or None,
            recipient_relationship=data.get("recipient_relationship") or None,
            is_paid=data["is_paid"],
            is_confirmed=data["is_confirmed"],
            served_by=request.user,
        )
        return Response(TicketSerializer(ticket).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def book(self, request):
        """
        Books a pending online ticket for the caller.
        """
        serializer = OnlineBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        ticket = TicketService.book_online(
            user=request.user,
            trip_id=data["trip"],
            preferred_seat=data.get("preferred_seat") or None,
            stop=data.get("stop"),
            recipient_name=data.get("recipient_name") or None,
            recipient_relationship=data.get("recipient_relationship") or None,
        )
        return Response(TicketSerializer(ticket).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        ticket = self.get_object()
        serializer = TicketUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)

        if not request.user.is_staff:
            restricted = [name for name in STAFF_ONLY_FIELDS if name in fields]
            wants_status = fields.get("status")
            if restricted or (wants_status and wants_status != "cancelled"):
                logger.warning(
                    f"User {request.user.username} denied ticket edit of {ticket.ticket_number}: {restricted or wants_status}"
                )
                raise PermissionDeniedException(GeneralMessage.PERMISSION_DENIED)

        ticket = TicketService.update_ticket(ticket.pk, fields)
        return Response(TicketSerializer(ticket).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        TicketService.delete_ticket(kwargs["pk"])
        return Response({"message": TicketMessage.TICKET_DELETED}, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path=r"user/(?P<user_id>\d+)")
    def by_user(self, request, user_id=None):
        """Tickets of one user; ``?search=`` over number, origin and destination."""
        OwnershipValidators.validate_self_or_staff(request.user, user_id)
        user = UserFieldValidators.get_user_or_404(user_id)
        tickets = TicketService.list_for_user(user, request.query_params.get("search"))
        return Response(TicketSerializer(tickets, many=True).data)

    @action(
        detail=False,
        methods=["put"],
        url_path=r"trips/(?P<trip_id>\d+)/stops/(?P<stop_id>\d+)/update-seats",
    )
    def update_seats(self, request, trip_id=None, stop_id=None):
        """
        Frees the seats of passengers getting off at a stop.
        """
        result = TicketService.release_seats_at_stop(trip_id, stop_id)
        logger.info(f"{request.user.username} released seats at stop {stop_id} on trip {trip_id}")
        return Response(result, status=status.HTTP_200_OK)
