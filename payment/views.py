from rest_framework import viewsets, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from .models import PaymentTransaction
from .serializers import PaymentTransactionSerializer, PaymentCreateSerializer
from .services import PaymentService
from utils.queryset_helpers import UserSpecificQuerysetMixin, FilterableQuerysetMixin
from exceptions.handlers import MethodNotAllowedException
from utils.constants import PaymentMessage
import logging

logger = logging.getLogger("payment")


class PaymentTransactionViewSet(
    UserSpecificQuerysetMixin,
    FilterableQuerysetMixin,
    viewsets.ModelViewSet,
):
    """
    ViewSet for payment transactions on tickets.
    Payments are recorded once and never edited or deleted.
    """

    queryset = PaymentTransaction.objects.select_related("ticket")
    serializer_class = PaymentTransactionSerializer
    permission_classes = [IsAuthenticated]
    filter_fields = ["status", "payment_method"]

    def create(self, request, *args, **kwargs):
        """
        Records a payment. A completed payment marks the ticket paid.
        """
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment, ticket = PaymentService.record_payment(
            user=request.user,
            ticket_id=data["ticket"],
            amount=data["amount"],
            payment_method=data["payment_method"],
            status=data["status"],
            transaction_id=data.get("transaction_id"),
        )
        return Response(
            {
                "payment": PaymentTransactionSerializer(payment).data,
                "ticket_number": ticket.ticket_number,
                "is_paid": ticket.is_paid,
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        raise MethodNotAllowedException(PaymentMessage.PAYMENT_NOT_ALLOWED)

    def partial_update(self, request, *args, **kwargs):
        raise MethodNotAllowedException(PaymentMessage.PAYMENT_NOT_ALLOWED)

    def destroy(self, request, *args, **kwargs):
        raise MethodNotAllowedException(PaymentMessage.PAYMENT_NOT_ALLOWED)
