from django.db import models
from django.conf import settings
from utils.constants import Choices


class Notification(models.Model):
    """
    In-app message shown to a user (booking confirmations, trip updates,
    license alerts).
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications"
    )
    subject = models.CharField(max_length=255)
    message = models.TextField()
    type = models.CharField(
        max_length=10, choices=Choices.NOTIFICATION_TYPE_CHOICES, default="info"
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.subject} -> {self.user_id}"
