from django.db import IntegrityError, transaction
from .models import PaymentTransaction
from tickets.services import TicketService
from exceptions.handlers import AlreadyExistsException
from utils.constants import PaymentMessage
from utils.payment_helpers import PaymentHelpers
from utils.validators import PaymentValidators, TicketValidators
import logging

logger = logging.getLogger("payment")


class PaymentService:

    @staticmethod
    def record_payment(user, ticket_id, amount, payment_method, status, transaction_id=None):
        """
        Stores a payment for a ticket. A completed payment marks the ticket
        paid through ``TicketService.update_ticket``, which awards points.

        Raises:
            TicketNotFoundException: If the ticket does not exist
            PermissionDeniedException: If a customer pays for someone else's ticket
            AlreadyExistsException: If the ticket already has a completed payment
        """
        ticket = TicketValidators.get_ticket(ticket_id)
        PaymentValidators.validate_ticket_for_payment(ticket, user)

        try:
            with transaction.atomic():
                payment = PaymentTransaction.objects.create(
                    ticket=ticket,
                    user=user,
                    transaction_id=PaymentHelpers.get_or_generate_transaction_id(transaction_id),
                    amount=amount,
                    payment_method=payment_method,
                    status=status,
                    paid_at=PaymentHelpers.paid_at_for(status),
                )
                if status == "completed" and not ticket.is_paid:
                    ticket = TicketService.update_ticket(ticket.pk, {"is_paid": True})
        except IntegrityError:
            logger.warning(f"Duplicate completed payment for ticket {ticket.ticket_number}")
            raise AlreadyExistsException(PaymentMessage.PAYMENT_ALREADY_COMPLETED)

        logger.info(
            f"Payment {payment.transaction_id} {payment.status} for ticket {ticket.ticket_number} by user {user.pk}"
        )
        return payment, ticket
