from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("stockline_store", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AppliedTransactionRecord",
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
                ("balance_id", models.CharField(db_index=True, max_length=320)),
                ("applied_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "stockline_applied_transactions",
                "ordering": ["applied_at", "transaction_id"],
            },
        ),
    ]
