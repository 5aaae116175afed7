from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.utils import timezone


class Role(models.Model):
    """
    Model for defining user roles in the system.

    Roles drive access control across the API: admins and staff operate
    the fleet and schedule trips, drivers are linked to a driver profile,
    and customers book tickets.
    """

    name = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class CustomUserManager(BaseUserManager):
    """
    Custom user manager that handles user creation without setting is_staff/is_superuser.
    Staff and superuser status are derived from the user's role.
    """

    def create_user(self, username, email=None, password=None, **extra_fields):
        """
        Create and save a user with the given username, email, and password.
        Validation is handled by serializers, this method focuses on user creation.
        """
        if not username:
            raise ValueError("The given username must be set")
        email = self.normalize_email(email)
        username = self.model.normalize_username(username)

        user = self.model(username=username, email=email, **extra_fields)
        user.set_password(password)
        user.save()
        return user

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        """
        Create and save a user holding the admin role.
        """
        extra_fields.setdefault("is_active", True)
        if "role" not in extra_fields:
            extra_fields["role"], _ = Role.objects.get_or_create(name="admin")

        return self.create_user(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Custom user model extending Django's AbstractUser.

    Adds a phone number (used for SMS notifications), a role and the
    cumulative loyalty point balance maintained by the rewards ledger.
    Staff and superuser status follow the role rather than stored flags.
    """
    email = models.EmailField()
    phone = models.CharField(max_length=15, blank=True)
    role = models.ForeignKey(Role, on_delete=models.SET_NULL, null=True, blank=True)
    total_points = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)

    REQUIRED_FIELDS = ["email", "phone"]
    USERNAME_FIELD = "username"

    objects = CustomUserManager()

    class Meta:
        db_table = "users"

    @property
    def is_staff(self):
        """
        Returns True for admin and staff roles.
        """
        if not self.role:
            return False
        return self.role.name in ["admin", "staff"]

    @property
    def is_superuser(self):
        """
        Returns True only for the admin role.
        """
        if not self.role:
            return False
        return self.role.name == "admin"

    def __str__(self):
        role_name = self.role.name if self.role else "No Role"
        return f"{self.username} ({role_name})"
