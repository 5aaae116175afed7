from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.db.models import F
from .models import PointsHistory
from utils.constants import RewardMessage
from utils.validators import RewardValidators
import logging

logger = logging.getLogger("rewards")


class RewardService:

    @staticmethod
    def points_for_distance(distance):
        """
        Whole points earned for ``distance`` km, or None when the distance
        is missing or not a number.
        """
        try:
            distance = float(distance)
        except (TypeError, ValueError):
            return None
        if distance < 0:
            return None
        return int(distance // settings.POINTS_DISTANCE_UNIT)

    @staticmethod
    def award(user, trip, ticket=None):
        """
        Credits ``user`` with points for travelling ``trip``.

        Points are floor(route distance / POINTS_DISTANCE_UNIT). Routes with
        no usable distance are skipped. A ticket is only ever awarded once.
        Nothing here raises to the caller; failures are logged.

        Returns:
            PointsHistory | None: The ledger entry, or None if nothing was awarded
        """
        distance = trip.route.distance
        points = RewardService.points_for_distance(distance)
        if points is None:
            logger.warning(
                f"No points for user {user.pk} on {trip.trip_code}: route distance {distance!r} is not usable"
            )
            return None

        if ticket is not None and PointsHistory.objects.filter(ticket=ticket, type="award").exists():
            logger.info(f"Ticket {ticket.ticket_number} already awarded, skipping")
            return None

        User = get_user_model()
        try:
            with transaction.atomic():
                User.objects.filter(pk=user.pk).update(total_points=F("total_points") + points)
                entry = PointsHistory.objects.create(
                    user=user,
                    ticket=ticket,
                    type="award",
                    points=points,
                    description=RewardMessage.AWARD_DESCRIPTION.format(distance=distance),
                )
        except DatabaseError as exc:
            logger.error(f"Failed to award points to user {user.pk} for {trip.trip_code}: {exc}")
            return None

        user.refresh_from_db(fields=["total_points"])
        logger.info(f"Awarded {points} points to user {user.pk} for {trip.trip_code}")
        return entry

    @staticmethod
    def redeem(user, points, description=None):
        """
        Spends ``points`` from the user's balance.

        Raises:
            InvalidInputException: If points is not positive or exceeds the balance
        """
        User = get_user_model()
        with transaction.atomic():
            locked = User.objects.select_for_update().get(pk=user.pk)
            RewardValidators.validate_redeemable(locked, points)
            locked.total_points -= points
            locked.save(update_fields=["total_points"])
            entry = PointsHistory.objects.create(
                user=locked,
                type="redeem",
                points=points,
                description=description or RewardMessage.REDEEM_DEFAULT_DESCRIPTION,
            )

        user.total_points = locked.total_points
        logger.info(f"User {user.pk} redeemed {points} points, balance {locked.total_points}")
        return entry
