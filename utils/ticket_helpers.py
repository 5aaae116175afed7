import random
import string
import logging
from django.conf import settings

logger = logging.getLogger("tickets")


class TicketHelpers:
    """
    Reusable helper methods for ticket operations.
    """

    @staticmethod
    def generate_unique_ticket_number():
        """
        Generate a unique ``<PREFIX>-<6 digits>`` ticket number.

        Returns:
            str: Unique ticket number
        """
        from tickets.models import Ticket

        prefix = settings.TICKET_NUMBER_PREFIX
        while True:
            number = f"{prefix}-{''.join(random.choices(string.digits, k=6))}"
            if not Ticket.objects.filter(ticket_number=number).exists():
                return number

    @staticmethod
    def message_context(ticket):
        """
        Values shared by the ticket notification, email and SMS templates.
        """
        trip = ticket.trip
        return {
            "ticket_number": ticket.ticket_number,
            "origin": trip.route.origin,
            "destination": trip.route.destination,
            "bus_number": trip.bus.bus_number,
            "status": ticket.status,
        }

    @staticmethod
    def email_details(ticket):
        context = TicketHelpers.message_context(ticket)
        return {
            "ticket_number": context["ticket_number"],
            "origin": context["origin"],
            "destination": context["destination"],
            "bus": context["bus_number"],
            "seat": ticket.seat_number or ticket.preferred_seat,
            "status": context["status"],
        }
