import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("tickets", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PointsHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "type",
                    models.CharField(
                        choices=[("award", "Award"), ("redeem", "Redeem")], max_length=10
                    ),
                ),
                ("points", models.PositiveIntegerField()),
                ("description", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "ticket",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="points_history",
                        to="tickets.ticket",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="points_history",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "points_history",
                "ordering": ["-created_at", "-id"],
                "verbose_name_plural": "points history",
            },
        ),
        migrations.AddConstraint(
            model_name="pointshistory",
            constraint=models.UniqueConstraint(
                condition=models.Q(("type", "award"), ("ticket__isnull", False)),
                fields=("ticket",),
                name="one_award_per_ticket",
            ),
        ),
    ]
