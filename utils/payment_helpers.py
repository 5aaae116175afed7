import uuid
import logging
from django.utils import timezone

logger = logging.getLogger("payment")


class PaymentHelpers:
    """
    Reusable helper methods for payment operations.
    """

    @staticmethod
    def generate_transaction_id():
        """
        Generates a unique transaction ID using UUID.

        Returns:
            str: Unique transaction ID
        """
        return str(uuid.uuid4())

    @staticmethod
    def get_or_generate_transaction_id(transaction_id=None):
        """
        Returns transaction_id if provided, otherwise generates a new one.
        """
        if not transaction_id:
            return PaymentHelpers.generate_transaction_id()
        return transaction_id.strip()

    @staticmethod
    def paid_at_for(status):
        """
        Completion timestamp for a payment in ``status``.
        """
        return timezone.now() if status == "completed" else None
