from django.db.models.signals import post_migrate
from django.dispatch import receiver
from .models import Role
import logging

logger = logging.getLogger("accounts")

DEFAULT_ROLES = [
    {"name": "admin", "description": "System administrator with full access"},
    {"name": "staff", "description": "Station staff who sell and manage tickets"},
    {"name": "driver", "description": "Bus driver linked to a driver profile"},
    {"name": "customer", "description": "Passenger who books trips"},
]


@receiver(post_migrate)
def create_default_roles(sender, **kwargs):
    """
    Create the default roles after the accounts app is migrated.
    """
    if sender.name != "accounts":
        return

    for role_data in DEFAULT_ROLES:
        _, created = Role.objects.get_or_create(
            name=role_data["name"],
            defaults={"description": role_data["description"]},
        )
        if created:
            logger.info(f"Role '{role_data['name']}' created")
