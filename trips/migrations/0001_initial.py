import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("fleet", "0001_initial"),
        ("routes", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="TripCodeCounter",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("scope", models.CharField(max_length=20, unique=True)),
                ("last_value", models.PositiveIntegerField(default=0)),
            ],
            options={
                "db_table": "trip_code_counters",
            },
        ),
        migrations.CreateModel(
            name="Trip",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("trip_code", models.CharField(max_length=30, unique=True)),
                ("embark_time", models.DateTimeField()),
                ("arrival_time", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("available", "Available"),
                            ("fully_booked", "Fully Booked"),
                            ("embarked", "Embarked"),
                            ("embarked_not_to_capacity", "Embarked Not To Capacity"),
                            ("completed", "Completed"),
                        ],
                        default="scheduled",
                        max_length=30,
                    ),
                ),
                ("is_scheduled", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "bus",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="trips",
                        to="fleet.bus",
                    ),
                ),
                (
                    "driver",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="trips",
                        to="fleet.driver",
                    ),
                ),
                (
                    "route",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="trips",
                        to="routes.route",
                    ),
                ),
            ],
            options={
                "db_table": "trips",
                "ordering": ["embark_time", "id"],
            },
        ),
        migrations.AddIndex(
            model_name="trip",
            index=models.Index(fields=["route", "embark_time"], name="trip_route_embark_idx"),
        ),
        migrations.CreateModel(
            name="TripSeat",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("seat_number", models.CharField(max_length=10)),
                (
                    "status",
                    models.CharField(
                        choices=[("available", "Available"), ("reserved", "Reserved")],
                        default="available",
                        max_length=10,
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "trip",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="seats",
                        to="trips.trip",
                    ),
                ),
            ],
            options={
                "db_table": "trip_seats",
                "ordering": ["trip", "id"],
            },
        ),
        migrations.AddConstraint(
            model_name="tripseat",
            constraint=models.UniqueConstraint(
                fields=("trip", "seat_number"), name="unique_seat_label_per_trip"
            ),
        ),
    ]
