from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django.db.models import ProtectedError
from .models import Bus, Driver
from .serializers import BusSerializer, DriverSerializer
from .services import FleetService
from utils.permission_helpers import ReadAuthenticatedWriteStaffMixin, IsAdminUser
from utils.queryset_helpers import FilterableQuerysetMixin, SearchableQuerysetMixin
from utils.constants import FleetMessage
from exceptions.handlers import InvalidInputException
import logging

logger = logging.getLogger("fleet")


class BusViewSet(
    ReadAuthenticatedWriteStaffMixin,
    SearchableQuerysetMixin,
    FilterableQuerysetMixin,
    viewsets.ModelViewSet,
):
    """
    Fleet buses. Anyone signed in can browse, staff and admins manage.
    Filters: ``?status=``; search: ``?search=`` over name, number and model.
    """

    queryset = Bus.objects.all()
    serializer_class = BusSerializer
    filter_fields = ["status"]
    search_fields = ["name", "bus_number", "model"]

    def perform_create(self, serializer):
        bus = serializer.save()
        logger.info(f"Bus created: {bus.bus_number} (capacity={bus.capacity}) by {self.request.user.username}")

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise InvalidInputException(FleetMessage.BUS_IN_USE)
        logger.info(f"Bus deleted: {instance.bus_number} by {self.request.user.username}")


class DriverViewSet(
    ReadAuthenticatedWriteStaffMixin,
    SearchableQuerysetMixin,
    FilterableQuerysetMixin,
    viewsets.ModelViewSet,
):
    """
    Driver profiles, plus an admin trigger for the license expiry sweep.
    """

    queryset = Driver.objects.select_related("user")
    serializer_class = DriverSerializer
    filter_fields = ["status"]
    search_fields = ["driver_no", "license_number", "user__username", "user__first_name", "user__last_name"]

    def get_permissions(self):
        if self.action == "check_license_expiry":
            return [IsAdminUser()]
        return super().get_permissions()

    def perform_create(self, serializer):
        driver = serializer.save()
        logger.info(f"Driver created: {driver.license_number} by {self.request.user.username}")

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise InvalidInputException(FleetMessage.DRIVER_IN_USE)
        logger.info(f"Driver deleted: {instance.license_number} by {self.request.user.username}")

    @action(detail=False, methods=["post"], url_path="check-license-expiry")
    def check_license_expiry(self, request):
        """Run the expiry sweep now instead of waiting for the nightly job."""
        suspended = FleetService.check_license_expiry()
        return Response({"suspended": suspended}, status=status.HTTP_200_OK)
