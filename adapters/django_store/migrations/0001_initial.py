from django.db import migrations, models


QTY = {"decimal_places": 4, "max_digits": 18}
MONEY = {"decimal_places": 2, "max_digits": 18}

ALERT_CHOICES = [
    ("normal", "Normal"),
    ("low_stock", "Low stock"),
    ("out_of_stock", "Out of stock"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="TransactionRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("transaction_id", models.CharField(max_length=100, unique=True)),
                ("item_code", models.CharField(blank=True, default="", max_length=100)),
                ("warehouse", models.CharField(blank=True, default="", max_length=100)),
                ("location", models.CharField(blank=True, default="", max_length=100)),
                (
                    "transaction_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("received", "Received"),
                            ("issued", "Issued"),
                            ("adjustment", "Adjustment"),
                            ("initial", "Initial"),
                        ],
                        default="",
                        max_length=50,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("planned", "Planned"),
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="",
                        max_length=50,
                    ),
                ),
                ("transaction_date", models.DateField(blank=True, null=True)),
                ("quantity", models.DecimalField(default=0, **QTY)),
                ("unit_cost", models.DecimalField(default=0, **MONEY)),
                ("physical_count", models.DecimalField(blank=True, null=True, **QTY)),
                ("before_qty", models.DecimalField(blank=True, null=True, **QTY)),
                ("po_number", models.CharField(blank=True, default="", max_length=100)),
                ("reference_type", models.CharField(blank=True, default="", max_length=100)),
                ("adjustment_reason", models.CharField(blank=True, default="", max_length=255)),
                ("remarks", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "stockline_transactions",
                "ordering": ["transaction_date", "transaction_id"],
                "indexes": [
                    models.Index(
                        fields=["item_code", "warehouse", "location", "transaction_date"],
                        name="idx_tx_key_date",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="BalanceRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("balance_id", models.CharField(max_length=320, unique=True)),
                ("item_code", models.CharField(max_length=100)),
                ("warehouse", models.CharField(max_length=100)),
                ("location", models.CharField(max_length=100)),
                ("current_qty", models.DecimalField(default=0, **QTY)),
                ("average_cost", models.DecimalField(default=0, **MONEY)),
                (
                    "inventory_value",
                    models.DecimalField(decimal_places=2, default=0, max_digits=24),
                ),
                ("safety_stock", models.DecimalField(default=0, **QTY)),
                ("reorder_point", models.DecimalField(default=0, **QTY)),
                (
                    "alert_flag",
                    models.CharField(
                        choices=ALERT_CHOICES, default="out_of_stock", max_length=20
                    ),
                ),
                ("last_transaction_date", models.DateField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "stockline_balances",
                "ordering": ["item_code", "warehouse", "location"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("item_code", "warehouse", "location"),
                        name="uq_balance_key",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ProjectionRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("summary_id", models.CharField(max_length=330, unique=True)),
                ("item_code", models.CharField(max_length=100)),
                ("warehouse", models.CharField(max_length=100)),
                ("location", models.CharField(max_length=100)),
                ("date", models.DateField()),
                ("opening_qty", models.DecimalField(**QTY)),
                ("received_qty", models.DecimalField(**QTY)),
                ("issued_qty", models.DecimalField(**QTY)),
                ("ending_qty", models.DecimalField(**QTY)),
                ("planned_received_qty", models.DecimalField(**QTY)),
                ("planned_issued_qty", models.DecimalField(**QTY)),
                ("projected_ending_qty", models.DecimalField(**QTY)),
                (
                    "alert_flag",
                    models.CharField(
                        choices=ALERT_CHOICES, default="normal", max_length=20
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "stockline_projection",
                "ordering": ["item_code", "warehouse", "location", "date"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("item_code", "warehouse", "location", "date"),
                        name="uq_projection_key_date",
                    )
                ],
            },
        ),
    ]
