from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import PointsHistoryViewSet

router = DefaultRouter()
router.register(r"rewards", PointsHistoryViewSet, basename="reward")

urlpatterns = [
    path("api/", include(router.urls)),
]
