from datetime import datetime
from django.contrib.auth import get_user_model
from fleet.models import Bus, Driver
from routes.models import Route, Stop
from trips.models import Trip
from tickets.models import Ticket
from exceptions.handlers import (
    AlreadyExistsException,
    InvalidInputException,
    NotFoundException,
    PermissionDeniedException,
    TicketNotFoundException,
    TripNotFoundException,
)
from utils.constants import (
    AlreadyExistsMessage,
    FleetMessage,
    GeneralMessage,
    PaymentMessage,
    RewardMessage,
    RouteMessage,
    TicketMessage,
    TripStatus,
    UserMessage,
)
import logging

User = get_user_model()
logger = logging.getLogger("accounts")


class UserFieldValidators:
    """
    Reusable validation helpers for user-related fields.
    Shared by the registration and profile serializers.
    """

    @staticmethod
    def validate_email_uniqueness(value, context="registration", exclude_user=None):
        """
        Validates email uniqueness among active users.
        """
        queryset = User.objects
        if exclude_user:
            queryset = queryset.exclude(pk=exclude_user.pk)

        if queryset.filter(email=value, is_active=True).exists():
            logger.error(f"{context.title()} failed - Email already exists: {value}")
            raise AlreadyExistsException(AlreadyExistsMessage.EMAIL_ALREADY_EXISTS)

        return value

    @staticmethod
    def validate_phone(value, context="registration", exclude_user=None):
        """
        Validates phone number format and uniqueness among active users.

        Args:
            value (str): Phone number, digits with an optional leading '+'
            context (str): Caller name used in log lines
            exclude_user: User to ignore in the uniqueness check (profile updates)

        Returns:
            str: The validated phone number

        Raises:
            InvalidInputException: If the phone number is malformed
            AlreadyExistsException: If another active user has this number
        """
        digits = value[1:] if value.startswith("+") else value
        if not digits.isdigit() or not 10 <= len(digits) <= 15:
            raise InvalidInputException(UserMessage.PHONE_NUMBER_INVALID)

        queryset = User.objects
        if exclude_user:
            queryset = queryset.exclude(pk=exclude_user.pk)

        if queryset.filter(phone=value, is_active=True).exists():
            logger.error(f"{context.title()} failed - Phone already exists: {value}")
            raise AlreadyExistsException(AlreadyExistsMessage.PHONE_ALREADY_EXISTS)

        return value

    @staticmethod
    def validate_username(value, context="registration"):
        """
        Validates username length and uniqueness across all users.

        Returns:
            str: The validated username

        Raises:
            InvalidInputException: If the username is too short
            AlreadyExistsException: If the username already exists
        """
        if len(value) < 5:
            raise InvalidInputException(UserMessage.USERNAME_TOO_SHORT)

        if User.objects.filter(username=value).exists():
            logger.error(f"{context.title()} failed - Username already exists: {value}")
            raise AlreadyExistsException(AlreadyExistsMessage.USERNAME_ALREADY_EXISTS)

        return value

    @staticmethod
    def get_user_or_404(user_id):
        try:
            return User.objects.get(pk=user_id)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFoundException(UserMessage.USER_NOT_FOUND)


class OwnershipValidators:
    """
    Checks that the caller may act on another user's data.
    """

    @staticmethod
    def validate_self_or_staff(request_user, user_id):
        """
        Allows access when the caller is the user in question or is staff.

        Raises:
            PermissionDeniedException: If a customer asks for someone else's data
        """
        if request_user.is_staff:
            return
        if str(request_user.pk) != str(user_id):
            logger.warning(
                f"User {request_user.username} denied access to data of user {user_id}"
            )
            raise PermissionDeniedException(GeneralMessage.PERMISSION_DENIED)


class DateValidators:

    @staticmethod
    def parse_date(value):
        """
        Parses a YYYY-MM-DD query parameter.

        Returns:
            date | None: Parsed date, or None when the value is empty

        Raises:
            InvalidInputException: If the value is not a valid date
        """
        if not value:
            return None
        try:
            return datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError:
            raise InvalidInputException(GeneralMessage.DATE_FORMAT_INVALID)


class FleetValidators:

    @staticmethod
    def get_bus(bus_id):
        try:
            return Bus.objects.get(pk=bus_id)
        except (Bus.DoesNotExist, ValueError, TypeError):
            raise NotFoundException(FleetMessage.BUS_NOT_FOUND)

    @staticmethod
    def get_driver(driver_id):
        try:
            return Driver.objects.get(pk=driver_id)
        except (Driver.DoesNotExist, ValueError, TypeError):
            raise NotFoundException(FleetMessage.DRIVER_NOT_FOUND)

    @staticmethod
    def validate_capacity(value):
        if value is None or value <= 0:
            raise InvalidInputException(FleetMessage.CAPACITY_INVALID)
        return value

    @staticmethod
    def validate_bus_number_uniqueness(value, exclude_bus=None):
        queryset = Bus.objects.filter(bus_number__iexact=value)
        if exclude_bus:
            queryset = queryset.exclude(pk=exclude_bus.pk)
        if queryset.exists():
            logger.error(f"Bus number already exists: {value}")
            raise AlreadyExistsException(AlreadyExistsMessage.BUS_NUMBER_ALREADY_EXISTS)
        return value

    @staticmethod
    def validate_driver_uniqueness(user, license_number, exclude_driver=None):
        """
        One driver profile per user and one profile per license number.
        """
        queryset = Driver.objects.all()
        if exclude_driver:
            queryset = queryset.exclude(pk=exclude_driver.pk)
        if user is not None and queryset.filter(user=user).exists():
            raise AlreadyExistsException(AlreadyExistsMessage.DRIVER_PROFILE_EXISTS)
        if license_number and queryset.filter(license_number__iexact=license_number).exists():
            logger.error(f"License number already exists: {license_number}")
            raise AlreadyExistsException(AlreadyExistsMessage.LICENSE_ALREADY_EXISTS)


class RouteValidators:

    @staticmethod
    def get_route(route_id):
        try:
            return Route.objects.get(pk=route_id)
        except (Route.DoesNotExist, ValueError, TypeError):
            raise NotFoundException(RouteMessage.ROUTE_NOT_FOUND)

    @staticmethod
    def get_stop(stop_id):
        try:
            return Stop.objects.get(pk=stop_id)
        except (Stop.DoesNotExist, ValueError, TypeError):
            raise NotFoundException(RouteMessage.STOP_NOT_FOUND)

    @staticmethod
    def validate_endpoints(origin, destination):
        """
        Ensures a route does not start and end at the same place.
        """
        if origin and destination and origin.strip().lower() == destination.strip().lower():
            raise InvalidInputException(RouteMessage.ORIGIN_AND_DESTINATION_SAME)

    @staticmethod
    def validate_positive(value, message):
        if value is not None and value <= 0:
            raise InvalidInputException(message)
        return value


class TripValidators:

    @staticmethod
    def get_trip(trip_id, lock=False):
        """
        Loads a trip, optionally taking a row lock for the current transaction.

        Raises:
            TripNotFoundException: If no trip has this id
        """
        queryset = Trip.objects.select_for_update() if lock else Trip.objects
        try:
            return queryset.get(pk=trip_id)
        except (Trip.DoesNotExist, ValueError, TypeError):
            raise TripNotFoundException()

    @staticmethod
    def validate_initial_status(status):
        if status and status not in TripStatus.BOOKABLE:
            raise InvalidInputException(
                f"A new trip must start as one of: {', '.join(TripStatus.BOOKABLE)}."
            )
        return status or TripStatus.SCHEDULED


class TicketValidators:

    @staticmethod
    def get_ticket(ticket_id, lock=False):
        queryset = Ticket.objects.select_for_update() if lock else Ticket.objects
        try:
            return queryset.get(pk=ticket_id)
        except (Ticket.DoesNotExist, ValueError, TypeError):
            raise TicketNotFoundException()

    @staticmethod
    def validate_trip_open(trip):
        """
        Completed trips take no new passengers.
        """
        if trip.status == TripStatus.COMPLETED:
            raise InvalidInputException(TicketMessage.TRIP_NOT_BOOKABLE)

    @staticmethod
    def validate_stop_on_route(stop, trip):
        if stop is not None and stop.route_id != trip.route_id:
            raise InvalidInputException(RouteMessage.STOP_NOT_ON_ROUTE)
        return stop


class RewardValidators:

    @staticmethod
    def validate_redeemable(user, points):
        """
        Checks a redemption request against the user's balance.

        Raises:
            InvalidInputException: If points is not positive or exceeds the balance
        """
        if points is None or points <= 0:
            raise InvalidInputException(RewardMessage.POINTS_MUST_BE_POSITIVE)
        if points > user.total_points:
            raise InvalidInputException(
                RewardMessage.INSUFFICIENT_POINTS.format(balance=user.total_points)
            )
        return points


class PaymentValidators:
    """
    Validation helpers for payment transactions.
    """

    @staticmethod
    def validate_payment_method(value):
        if value not in {"CASH", "MOMO", "CARD"}:
            raise InvalidInputException(PaymentMessage.INVALID_PAYMENT_METHOD)
        return value

    @staticmethod
    def validate_payment_amount(value):
        if value is None or value <= 0:
            raise InvalidInputException(PaymentMessage.PAYMENT_AMOUNT_ZERO)
        return value

    @staticmethod
    def validate_transaction_id(value):
        if value is not None and not str(value).strip():
            raise InvalidInputException(PaymentMessage.PAYMENT_TRANSACTION_ID_BLANK)
        return value

    @staticmethod
    def validate_ticket_for_payment(ticket, user):
        """
        Checks that the caller may pay for the ticket and that it is payable.

        Raises:
            PermissionDeniedException: If a customer pays for another user's ticket
            InvalidInputException: If the ticket is cancelled
            AlreadyExistsException: If a completed payment already exists
        """
        if not user.is_staff and ticket.user_id != user.pk:
            raise PermissionDeniedException(PaymentMessage.PAYMENT_UNAUTHORIZED)
        if ticket.status == "cancelled":
            raise InvalidInputException(PaymentMessage.TICKET_CANCELLED)
        if ticket.payments.filter(status="completed").exists():
            raise AlreadyExistsException(PaymentMessage.PAYMENT_ALREADY_COMPLETED)
        return ticket
