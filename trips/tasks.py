from celery import shared_task
from routes.models import Route
from .services import CapacityRollover
import logging

logger = logging.getLogger("trips")


@shared_task(name="trips.rebalance_route")
def rebalance_route(route_id):
    """Run the capacity rollover sweep for one route in a worker."""
    try:
        route = Route.objects.get(pk=route_id)
    except Route.DoesNotExist:
        logger.warning(f"Rebalance skipped: route {route_id} no longer exists")
        return None
    return CapacityRollover.rebalance_route(route)


@shared_task(name="trips.rebalance_all_routes")
def rebalance_all_routes():
    """Sweep every route; scheduled by beat as a safety net."""
    summaries = []
    for route in Route.objects.all():
        summaries.append(CapacityRollover.rebalance_route(route))
    return summaries
