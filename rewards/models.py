from django.conf import settings
from django.db import models
from django.db.models import Q
from utils.constants import Choices


class PointsHistory(models.Model):
    """
    Loyalty ledger entry. Rows are written once and never edited; the
    user's running balance lives on ``User.total_points``.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="points_history"
    )
    ticket = models.ForeignKey(
        "tickets.Ticket",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="points_history",
    )
    type = models.CharField(max_length=10, choices=Choices.POINTS_TYPE_CHOICES)
    points = models.PositiveIntegerField()
    description = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "points_history"
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "points history"
        constraints = [
            models.UniqueConstraint(
                fields=["ticket"],
                condition=Q(type="award", ticket__isnull=False),
                name="one_award_per_ticket",
            )
        ]

    def __str__(self):
        return f"{self.user} {self.type} {self.points}"
