from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django.db.models import ProtectedError
from .models import Route, Stop
from .serializers import RouteSerializer, StopSerializer
from trips.services import CapacityRollover
from utils.permission_helpers import ReadAuthenticatedWriteStaffMixin
from utils.queryset_helpers import SearchableQuerysetMixin
from utils.validators import RouteValidators
from utils.constants import RouteMessage
from exceptions.handlers import InvalidInputException
import logging

logger = logging.getLogger("routes")


class RouteViewSet(
    ReadAuthenticatedWriteStaffMixin,
    SearchableQuerysetMixin,
    viewsets.ModelViewSet,
):
    """
    ViewSet for managing routes and their stops.
    Supports CRUD operations and custom actions.
    """

    queryset = Route.objects.prefetch_related("stops")
    serializer_class = RouteSerializer
    search_fields = ["origin", "destination"]

    def create(self, request, *args, **kwargs):
        """
        Creates a new route.
        Validates endpoints, distance and duration.
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        logger.info(f"Route created: {serializer.data['origin']} to {serializer.data['destination']} by {request.user.username}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
        logger.info(f"Route {instance.pk} updated by {request.user.username}")
        return Response(serializer.data)

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise InvalidInputException(RouteMessage.ROUTE_IN_USE)
        logger.info(f"Route removed by {self.request.user.username}.")

    @action(detail=True, methods=["get", "post"])
    def stops(self, request, pk=None):
        """
        GET lists the stops of the route, POST adds one.
        """
        route = self.get_object()
        if request.method == "GET":
            return Response(StopSerializer(route.stops.all(), many=True).data)

        data = request.data.copy()
        data["route"] = route.pk
        serializer = StopSerializer(data=data)
        serializer.is_valid(raise_exception=True)
        stop = serializer.save()
        logger.info(f"Stop {stop.stop_name} added to route {route.pk} by {request.user.username}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def rebalance(self, request, pk=None):
        """
        Saturates full trips on the route and opens their successors.
        Safe to call repeatedly.
        """
        route = self.get_object()
        summary = CapacityRollover.rebalance_route(route)
        return Response(summary, status=status.HTTP_200_OK)


class StopViewSet(ReadAuthenticatedWriteStaffMixin, viewsets.ModelViewSet):
    """
    Stops across all routes. ``?route=<id>`` narrows to one route.
    """

    queryset = Stop.objects.select_related("route")
    serializer_class = StopSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        route_id = self.request.query_params.get("route")
        if route_id:
            qs = qs.filter(route=RouteValidators.get_route(route_id))
        return qs

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise InvalidInputException(RouteMessage.STOP_IN_USE)
        logger.info(f"Stop {instance.stop_name} removed by {self.request.user.username}.")
