"""
Builders for the objects most tests need: users with a role, buses,
drivers, routes with stops and trips with their seat ledger.
"""
from datetime import timedelta
from django.contrib.auth import get_user_model
from django.utils import timezone
from accounts.models import Role
from fleet.models import Bus, Driver
from routes.models import Route, Stop

User = get_user_model()


class TransitFactory:

    counter = 0

    @classmethod
    def _next(cls):
        cls.counter += 1
        return cls.counter

    @classmethod
    def user(cls, role="customer", **extra):
        n = cls._next()
        role_obj, _ = Role.objects.get_or_create(name=role)
        defaults = {
            "email": f"user{n}@example.com",
            "phone": f"02440000{n:02d}",
            "role": role_obj,
        }
        defaults.update(extra)
        username = defaults.pop("username", f"{role}_user{n}")
        return User.objects.create_user(username=username, password="pass12345", **defaults)

    @classmethod
    def bus(cls, capacity=2, **extra):
        n = cls._next()
        defaults = {"name": f"Coach {n}", "model": "Yutong", "bus_number": f"GR-{n:04d}-24"}
        defaults.update(extra)
        return Bus.objects.create(capacity=capacity, **defaults)

    @classmethod
    def driver(cls, user=None, **extra):
        n = cls._next()
        user = user or cls.user(role="driver")
        defaults = {"driver_no": f"DRV{n:03d}", "license_number": f"LIC-{n:05d}"}
        defaults.update(extra)
        return Driver.objects.create(user=user, **defaults)

    @classmethod
    def route(cls, distance=120, stops=("Kasoa", "Winneba"), **extra):
        defaults = {"origin": "Accra", "destination": "Cape Coast", "duration": 3}
        defaults.update(extra)
        route = Route.objects.create(distance=distance, **defaults)
        for index, name in enumerate(stops):
            Stop.objects.create(route=route, stop_name=name, price=20 + index * 10)
        return route

    @classmethod
    def trip(cls, bus=None, driver=None, route=None, hours_ahead=24, status=None, capacity=2):
        from trips.services import TripService

        bus = bus or cls.bus(capacity=capacity)
        driver = driver or cls.driver()
        route = route or cls.route()
        return TripService.create_trip(
            bus_id=bus.pk,
            driver_id=driver.pk,
            route_id=route.pk,
            embark_time=timezone.now() + timedelta(hours=hours_ahead),
            status=status,
        )
