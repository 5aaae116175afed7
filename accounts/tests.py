from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status
from django.contrib.auth import get_user_model
from .models import Role

User = get_user_model()


class RoleModelTest(TestCase):
    """Test cases for Role model."""

    def test_default_roles_exist(self):
        """post_migrate creates the four default roles."""
        names = set(Role.objects.values_list("name", flat=True))
        self.assertTrue({"admin", "staff", "driver", "customer"} <= names)

    def test_role_str_representation(self):
        role, _ = Role.objects.get_or_create(name="staff")
        self.assertEqual(str(role), "staff")


class UserModelTest(TestCase):
    """Staff and superuser status follow the role."""

    def _user(self, username, role_name):
        role = Role.objects.get(name=role_name) if role_name else None
        return User.objects.create_user(
            username=username, email=f"{username}@example.com", password="pass12345", role=role
        )

    def test_role_derived_flags(self):
        self.assertTrue(self._user("admin01", "admin").is_superuser)
        self.assertTrue(self._user("staff01", "staff").is_staff)
        self.assertFalse(self._user("staff02", "staff").is_superuser)
        self.assertFalse(self._user("customer01", "customer").is_staff)
        self.assertFalse(self._user("norole01", None).is_staff)

    def test_create_superuser_assigns_admin_role(self):
        user = User.objects.create_superuser(username="rootuser", email="root@example.com", password="pass12345")
        self.assertEqual(user.role.name, "admin")
        self.assertEqual(user.total_points, 0)


class RegistrationAPITest(APITestCase):
    """Test cases for the registration API."""

    def setUp(self):
        self.url = reverse("register")
        self.data = {
            "username": "kwame_mensah",
            "email": "kwame@example.com",
            "phone": "0244123456",
            "password": "testpass123",
            "confirm_password": "testpass123",
            "first_name": "Kwame",
            "last_name": "Mensah",
        }

    def test_registration_defaults_to_customer(self):
        response = self.client.post(self.url, self.data, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["user"]["role"]["name"], "customer")
        self.assertTrue(User.objects.filter(username="kwame_mensah").exists())

    def test_admin_role_rejected(self):
        self.data["role_id"] = Role.objects.get(name="admin").id
        response = self.client.post(self.url, self.data, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data["success"])

    def test_password_mismatch(self):
        self.data["confirm_password"] = "different123"
        response = self.client.post(self.url, self.data, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicate_email(self):
        self.client.post(self.url, self.data, format="json")
        self.data.update({"username": "ama_owusu", "phone": "0244999999"})
        response = self.client.post(self.url, self.data, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_short_username(self):
        self.data["username"] = "abc"
        response = self.client.post(self.url, self.data, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class LoginProfileAPITest(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user(
            username="ama_owusu",
            email="ama@example.com",
            phone="0244000111",
            password="testpass123",
            role=Role.objects.get(name="customer"),
        )

    def test_login_returns_tokens(self):
        response = self.client.post(
            reverse("login"), {"username": "ama_owusu", "password": "testpass123"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data["tokens"])
        self.assertIn("refresh", response.data["tokens"])
        self.assertEqual(response.data["user"]["username"], "ama_owusu")

    def test_login_wrong_password(self):
        response = self.client.post(
            reverse("login"), {"username": "ama_owusu", "password": "wrong"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_profile_requires_auth(self):
        response = self.client.get(reverse("profile"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_profile_update(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.patch(reverse("profile"), {"first_name": "Ama"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["first_name"], "Ama")
        self.assertEqual(response.data["total_points"], 0)

    def test_change_password(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.post(
            reverse("change-password"),
            {"old_password": "testpass123", "new_password": "N3wSecurePass!"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("N3wSecurePass!"))
