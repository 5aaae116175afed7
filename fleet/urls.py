from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import BusViewSet, DriverViewSet

router = DefaultRouter()
router.register(r"buses", BusViewSet, basename="bus")
router.register(r"drivers", DriverViewSet, basename="driver")

urlpatterns = [
    path("api/", include(router.urls)),
]
