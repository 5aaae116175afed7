from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from .models import PointsHistory
from .serializers import PointsHistorySerializer, RedeemSerializer
from .services import RewardService
from utils.queryset_helpers import FilterableQuerysetMixin, UserSpecificQuerysetMixin
import logging

logger = logging.getLogger("rewards")


class PointsHistoryViewSet(
    UserSpecificQuerysetMixin,
    FilterableQuerysetMixin,
    viewsets.ReadOnlyModelViewSet,
):
    """
    Loyalty ledger. Customers see their own entries, staff see all.
    ``?type=award`` or ``?type=redeem`` narrows the list.
    """

    queryset = PointsHistory.objects.select_related("ticket").order_by("-created_at", "-id")
    serializer_class = PointsHistorySerializer
    permission_classes = [IsAuthenticated]
    filter_fields = ["type"]

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        return Response({"balance": request.user.total_points, "history": response.data})

    @action(detail=False, methods=["post"])
    def redeem(self, request):
        """Spends points from the caller's balance."""
        serializer = RedeemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = RewardService.redeem(
            request.user,
            serializer.validated_data["points"],
            serializer.validated_data.get("description"),
        )
        return Response(
            {"balance": request.user.total_points, "entry": PointsHistorySerializer(entry).data},
            status=status.HTTP_201_CREATED,
        )
