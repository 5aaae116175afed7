# ---------- STATUS CHOICES ----------

class Choices:
    TRIP_STATUS_CHOICES = [
        ("scheduled", "Scheduled"),
        ("available", "Available"),
        ("fully_booked", "Fully Booked"),
        ("embarked", "Embarked"),
        ("embarked_not_to_capacity", "Embarked Not To Capacity"),
        ("completed", "Completed"),
    ]

    SEAT_STATUS_CHOICES = [
        ("available", "Available"),
        ("reserved", "Reserved"),
    ]

    TICKET_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("confirmed", "Confirmed"),
        ("cancelled", "Cancelled"),
    ]

    TICKET_TYPE_CHOICES = [
        ("online", "Online"),
        ("walkin", "Walk-in"),
    ]

    POINTS_TYPE_CHOICES = [
        ("award", "Award"),
        ("redeem", "Redeem"),
    ]

    BUS_STATUS_CHOICES = [
        ("active", "Active"),
        ("maintenance", "Maintenance"),
        ("hired", "Hired"),
        ("reserved", "Reserved"),
        ("cleaning", "Cleaning"),
        ("inspection", "Inspection"),
        ("accident", "Accident"),
        ("out_of_service", "Out Of Service"),
        ("retired", "Retired"),
    ]

    DRIVER_STATUS_CHOICES = [
        ("active", "Active"),
        ("on_duty", "On Duty"),
        ("driving", "Driving"),
        ("off_duty", "Off Duty"),
        ("leave", "Leave"),
        ("suspended", "Suspended"),
        ("terminated", "Terminated"),
    ]

    NOTIFICATION_TYPE_CHOICES = [
        ("info", "Info"),
        ("warning", "Warning"),
        ("error", "Error"),
    ]

    PAYMENT_METHOD_CHOICES = [
        ("CASH", "Cash"),
        ("MOMO", "Mobile Money"),
        ("CARD", "Card"),
    ]

    PAYMENT_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("completed", "Completed"),
        ("failed", "Failed"),
        ("refunded", "Refunded"),
    ]


# ---------- TRIP STATUS GROUPS ----------
class TripStatus:
    SCHEDULED = "scheduled"
    AVAILABLE = "available"
    FULLY_BOOKED = "fully_booked"
    EMBARKED = "embarked"
    EMBARKED_NOT_TO_CAPACITY = "embarked_not_to_capacity"
    COMPLETED = "completed"

    # Trips that still accept bookings
    BOOKABLE = (SCHEDULED, AVAILABLE)
    # Tickets on these trips can no longer be deleted
    DEPARTED = (EMBARKED, COMPLETED)
    # Entering one of these texts every passenger
    ANNOUNCED = (EMBARKED, COMPLETED)


# ---------- USER MESSAGES ----------
class UserMessage:
    INVALID_CREDENTIALS = "Invalid username or password."
    PASSWORD_CHANGED_SUCCESS = "Password changed successfully."
    USERNAME_TOO_SHORT = "Username must be at least 5 characters long."
    PHONE_NUMBER_INVALID = "Phone number must be 10 to 15 digits."
    ADMIN_ROLE_REGISTRATION_NOT_ALLOWED = "Admin role registration is not allowed."
    ROLE_NOT_FOUND = "Role not found."
    PASSWORD_NOT_MATCH = "Passwords do not match."
    USER_NOT_FOUND = "User not found."
    REGISTRATION_SUCCESS = "Registration successful."
    LOGOUT_SUCCESS = "Successfully logged out."


# ---------- UNIQUE FIELD CONFLICTS ----------
class AlreadyExistsMessage:
    EMAIL_ALREADY_EXISTS = "Email already exists."
    USERNAME_ALREADY_EXISTS = "Username already exists."
    PHONE_ALREADY_EXISTS = "Phone number already exists."
    BUS_NUMBER_ALREADY_EXISTS = "Bus with this number already exists."
    LICENSE_ALREADY_EXISTS = "Driver with this license number already exists."
    DRIVER_PROFILE_EXISTS = "This user already has a driver profile."


class GeneralMessage:
    INVALID_INPUT = "Invalid input provided."
    NOT_FOUND = "Not found."
    PERMISSION_DENIED = "You do not have permission to perform this action."
    SOMETHING_WENT_WRONG = "Something went wrong. Please try again later."
    DATE_FORMAT_INVALID = "Dates must be in YYYY-MM-DD format."


# ---------- FLEET CONSTANTS ----------
class FleetMessage:
    BUS_NOT_FOUND = "Bus not found."
    DRIVER_NOT_FOUND = "Driver not found."
    CAPACITY_INVALID = "Capacity must be a positive number."
    BUS_IN_USE = "Bus is assigned to trips and cannot be deleted."
    DRIVER_IN_USE = "Driver is assigned to trips and cannot be deleted."
    LICENSE_EXPIRED_SUBJECT = "License Expired - Suspension"
    LICENSE_EXPIRED_MESSAGE = (
        "Your driver's license (No: {license_number}) expired on {expiry}. "
        "You have been suspended until it is renewed."
    )
    LICENSE_ALERT_SUBJECT = "Driver License Expiry Alert"
    LICENSE_ALERT_MESSAGE = (
        "Driver {driver_no} ({name}) has an expired license "
        "(No: {license_number}, expired {expiry}) and has been suspended."
    )


# ----------- ROUTE/STOP CONSTANTS -------------
class RouteMessage:
    ROUTE_NOT_FOUND = "Route not found."
    STOP_NOT_FOUND = "Stop not found."
    ORIGIN_AND_DESTINATION_SAME = "Origin and destination must be different."
    DISTANCE_INVALID = "Distance must be a positive number."
    DURATION_INVALID = "Duration must be a positive number."
    PRICE_INVALID = "Price cannot be negative."
    STOP_NOT_ON_ROUTE = "Stop does not belong to this trip's route."
    ROUTE_IN_USE = "Route has trips and cannot be deleted."
    STOP_IN_USE = "Stop is referenced by tickets and cannot be deleted."


# ------------TRIP CONSTANTS-------------
class TripMessage:
    TRIP_NOT_FOUND = "Trip not found."
    SCHEDULING_CONFLICT = (
        "A trip with the same bus, driver and embark time already exists."
    )
    BUS_CAPACITY_EXCEEDED = "The bus cannot take on this trip."
    SEAT_LABEL_MISSING_ON_BUS = (
        "Seat {seat_number} held by ticket {ticket_number} does not exist on the new bus."
    )
    NO_AVAILABLE_SUCCESSOR = "No available trips for this route."
    INVALID_TRANSITION = "Trip cannot move from {current} to {target}."
    TRIP_HAS_TICKETS = "Trip has tickets and cannot be deleted."
    ROUTE_CHANGE_WITH_TICKETS = "Trip has tickets, its route cannot be changed."
    STATUS_SMS = (
        "Trip Status Update: The trip with code {trip_code} has now been "
        "{status}. Thank you for choosing us!"
    )


# ------------SEAT CONSTANTS-------------
class SeatMessage:
    SEAT_UNAVAILABLE = "Seat is not available."
    SEAT_UNAVAILABLE_LABEL = "Seat {seat_number} is not available on this trip."


# ------------TICKET CONSTANTS-------------
class TicketMessage:
    TICKET_NOT_FOUND = "Ticket not found."
    SEAT_NUMBER_REQUIRED = "Seat number is required for a walk-in ticket."
    SEAT_REQUIRED_TO_CONFIRM = "A seat number or preferred seat is required to confirm this ticket."
    SEAT_CHANGE_AFTER_ALIGHTING = "Passenger has already alighted, the seat cannot be changed."
    TRIP_ALREADY_DEPARTED = "Cannot delete ticket as the trip has already embarked or completed."
    INVALID_TRANSITION = "Ticket cannot move from {current} to {target}."
    NO_PASSENGERS_AT_STOP = "No confirmed passengers alight at this stop."
    TRIP_NOT_BOOKABLE = "Trip is not open for booking."
    TICKET_DELETED = "Ticket deleted successfully."
    SEATS_RELEASED = "{count} seat(s) released at stop."

    CREATED_SUBJECT = "Ticket Created"
    CREATED_MESSAGE = (
        "Your ticket for the trip from {origin} to {destination} on bus "
        "{bus_number} has been created. Ticket Number: {ticket_number}."
    )
    BOOKED_SUBJECT = "Trip Booked"
    BOOKED_MESSAGE = (
        "Your trip from {origin} to {destination} on bus {bus_number} has been "
        "booked pending confirmation. Your ticket number is {ticket_number}."
    )
    UPDATED_SUBJECT = "Ticket Updated"
    UPDATED_MESSAGE = (
        "Your ticket {ticket_number} for the trip from {origin} to {destination} "
        "on bus {bus_number} has been updated. Status: {status}."
    )
    CREATED_SMS = (
        "Your trip from : {origin} to : {destination} on bus {bus_number} has "
        "been booked.\nTicket number: {ticket_number}.\n\nComfortably Safe !"
    )
    BOOKED_SMS = (
        "Your trip from : {origin} to : {destination} on bus {bus_number} has "
        "been booked pending confirmation. Ticket number: {ticket_number}."
    )
    UPDATED_SMS = (
        "Your ticket {ticket_number} from : {origin} to : {destination} has "
        "been updated. Status: {status}."
    )


# ------------REWARD CONSTANTS-------------
class RewardMessage:
    AWARD_DESCRIPTION = "Points awarded for trip of {distance} km"
    POINTS_MUST_BE_POSITIVE = "Points must be greater than zero."
    INSUFFICIENT_POINTS = "Insufficient points. Current balance is {balance}."
    REDEEM_DEFAULT_DESCRIPTION = "Points redeemed"


# ----------- PAYMENT CONSTANTS -------------
class PaymentMessage:
    PAYMENT_ALREADY_COMPLETED = "Payment already completed for this ticket."
    PAYMENT_NOT_ALLOWED = "Payments cannot be modified or deleted."
    PAYMENT_UNAUTHORIZED = "You are not authorized to pay for this ticket."
    PAYMENT_AMOUNT_ZERO = "Amount must be greater than zero."
    PAYMENT_TRANSACTION_ID_BLANK = "Transaction ID cannot be blank."
    INVALID_PAYMENT_METHOD = "Invalid payment method (Cash, MoMo or Card)."
    TICKET_CANCELLED = "Cannot pay for a cancelled ticket."


# ----------- NOTIFICATION CONSTANTS -------------
class NotificationMessage:
    EMAIL_SUBJECT = "Your Ticket Details"
    EMAIL_FOOTER = "Comfortably safe!"
