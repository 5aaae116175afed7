from rest_framework.exceptions import APIException
from rest_framework import status
from rest_framework.views import exception_handler
from rest_framework.response import Response
from django.core.exceptions import (
    ObjectDoesNotExist,
    ValidationError as DjangoValidationError,
)
from django.db import DatabaseError
from rest_framework.exceptions import ValidationError as DRFValidationError
from utils.constants import (
    GeneralMessage,
    SeatMessage,
    TripMessage,
    TicketMessage,
)
import logging

logger = logging.getLogger("exceptions")


def custom_exception_handler(exc, context):
    view = context.get("view")
    view_name = view.__class__.__name__ if view else "unknown"

    # Handle Django's DoesNotExist as 404
    if isinstance(exc, ObjectDoesNotExist):
        return Response(
            {"success": False, "message": GeneralMessage.NOT_FOUND},
            status=status.HTTP_404_NOT_FOUND,
        )

    # Handle Django and DRF validation errors as 400
    if isinstance(exc, (DjangoValidationError, DRFValidationError)):
        if hasattr(exc, "detail"):
            detail = exc.detail
        elif hasattr(exc, "message_dict"):
            detail = exc.message_dict
        else:
            detail = exc.messages
        return Response(
            {"success": False, "message": detail},
            status=status.HTTP_400_BAD_REQUEST,
        )

    # Typed domain errors and DRF's own (NotAuthenticated, NotFound, ...)
    if isinstance(exc, APIException):
        response = exception_handler(exc, context)
        if response is None:
            response = Response(status=exc.status_code)
        response.data = {"success": False, "message": exc.detail}
        return response

    # Storage failures never leak driver details to the client
    if isinstance(exc, DatabaseError):
        logger.exception(f"Database error in {view_name}: {exc}")
        return Response(
            {"success": False, "message": GeneralMessage.SOMETHING_WENT_WRONG},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    response = exception_handler(exc, context)
    if response is not None:
        response.data = {"success": False, "message": response.data}
        return response

    # Catch-all for any other exception
    logger.exception(f"Unhandled error in {view_name}: {exc}")
    return Response(
        {"success": False, "message": GeneralMessage.SOMETHING_WENT_WRONG},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AlreadyExistsException(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "already_exists"


class NotFoundException(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = GeneralMessage.NOT_FOUND
    default_code = "not_found"


class PermissionDeniedException(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = GeneralMessage.PERMISSION_DENIED
    default_code = "permission_denied"


class UnauthorizedAccessException(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "unauthorized_access"


class InvalidInputException(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = GeneralMessage.INVALID_INPUT
    default_code = "invalid_input"


class MethodNotAllowedException(APIException):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    default_code = "method_not_allowed"


# ---------- BOOKING CORE ----------

class TripNotFoundException(NotFoundException):
    default_detail = TripMessage.TRIP_NOT_FOUND
    default_code = "trip_not_found"


class TicketNotFoundException(NotFoundException):
    default_detail = TicketMessage.TICKET_NOT_FOUND
    default_code = "ticket_not_found"


class SeatUnavailableException(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = SeatMessage.SEAT_UNAVAILABLE
    default_code = "seat_unavailable"


class SchedulingConflictException(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = TripMessage.SCHEDULING_CONFLICT
    default_code = "scheduling_conflict"


class BusCapacityExceededException(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = TripMessage.BUS_CAPACITY_EXCEEDED
    default_code = "bus_capacity_exceeded"


class NoAvailableSuccessorException(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = TripMessage.NO_AVAILABLE_SUCCESSOR
    default_code = "no_available_successor"


class TripAlreadyDepartedException(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = TicketMessage.TRIP_ALREADY_DEPARTED
    default_code = "trip_already_departed"


class InvalidTripTransitionException(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = TripMessage.INVALID_TRANSITION
    default_code = "invalid_trip_transition"


class InvalidTicketTransitionException(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = TicketMessage.INVALID_TRANSITION
    default_code = "invalid_ticket_transition"


class NoPassengersAtStopException(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = TicketMessage.NO_PASSENGERS_AT_STOP
    default_code = "no_passengers_at_stop"
