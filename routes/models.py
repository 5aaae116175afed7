from django.db import models


class Route(models.Model):
    """
    A bus line from ``origin`` to ``destination``.
    ``distance`` (km) drives the loyalty points awarded for a paid ticket;
    routes without a distance earn nothing.
    """
    origin = models.CharField(max_length=100)
    destination = models.CharField(max_length=100)
    distance = models.FloatField(null=True, blank=True)
    duration = models.FloatField(null=True, blank=True, help_text="Hours")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "routes"
        ordering = ["origin", "destination"]

    def __str__(self):
        return f"{self.origin} to {self.destination}"


class Stop(models.Model):
    """
    An alighting point on a route, with the fare to reach it.
    """
    route = models.ForeignKey(Route, on_delete=models.CASCADE, related_name="stops")
    stop_name = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "stops"
        ordering = ["route", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["route", "stop_name"], name="unique_stop_name_per_route"
            )
        ]

    def __str__(self):
        return f"{self.stop_name} ({self.route})"
