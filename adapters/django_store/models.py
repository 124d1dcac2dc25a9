"""
Stockline Django Store — Persistent Records
=============================================
Rows behind DjangoInventoryStore.

RULES (NON-NEGOTIABLE):
- One BalanceRecord per location key (balance_id is deterministic)
- One ProjectionRecord per (location key, date) (summary_id is deterministic)
- Balance and projection rows are created on first reference and
  only updated afterwards, never deleted by the engine
- Quantities are stored with 4 decimal places, money with 2
- A transaction id is recorded as applied at most once

This file contains NO business logic.
"""

from django.db import models


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class TransactionTypeChoice(models.TextChoices):
    RECEIVED = "received", "Received"
    ISSUED = "issued", "Issued"
    ADJUSTMENT = "adjustment", "Adjustment"
    INITIAL = "initial", "Initial"


class TransactionStatusChoice(models.TextChoices):
    PLANNED = "planned", "Planned"
    CONFIRMED = "confirmed", "Confirmed"
    CANCELLED = "cancelled", "Cancelled"


class AlertFlagChoice(models.TextChoices):
    NORMAL = "normal", "Normal"
    LOW_STOCK = "low_stock", "Low stock"
    OUT_OF_STOCK = "out_of_stock", "Out of stock"


def _qty_field(**kwargs):
    return models.DecimalField(max_digits=18, decimal_places=4, **kwargs)


def _money_field(**kwargs):
    return models.DecimalField(max_digits=18, decimal_places=2, **kwargs)


# ══════════════════════════════════════════════════════════════
# TRANSACTION
# ══════════════════════════════════════════════════════════════

class TransactionRecord(models.Model):
    """
    One inventory transaction.

    transaction_type / status hold the canonical value when the label
    was recognized, otherwise the raw label as received.
    """

    # ── Identity ──────────────────────────────────────────────
    transaction_id = models.CharField(max_length=100, unique=True)

    # ── Location key ──────────────────────────────────────────
    item_code = models.CharField(max_length=100, blank=True, default="")
    warehouse = models.CharField(max_length=100, blank=True, default="")
    location = models.CharField(max_length=100, blank=True, default="")

    # ── Classification ────────────────────────────────────────
    transaction_type = models.CharField(
        max_length=50, choices=TransactionTypeChoice.choices, blank=True, default=""
    )
    status = models.CharField(
        max_length=50, choices=TransactionStatusChoice.choices, blank=True, default=""
    )
    transaction_date = models.DateField(null=True, blank=True)

    # ── Amounts ───────────────────────────────────────────────
    quantity = _qty_field(default=0)
    unit_cost = _money_field(default=0)
    physical_count = _qty_field(null=True, blank=True)
    before_qty = _qty_field(null=True, blank=True)

    # ── References (carried, not interpreted) ─────────────────
    po_number = models.CharField(max_length=100, blank=True, default="")
    reference_type = models.CharField(max_length=100, blank=True, default="")
    adjustment_reason = models.CharField(max_length=255, blank=True, default="")
    remarks = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "stockline_transactions"
        ordering = ["transaction_date", "transaction_id"]
        indexes = [
            models.Index(
                fields=["item_code", "warehouse", "location", "transaction_date"],
                name="idx_tx_key_date",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.transaction_id} ({self.transaction_type}/{self.status})"


# ══════════════════════════════════════════════════════════════
# BALANCE
# ══════════════════════════════════════════════════════════════

class BalanceRecord(models.Model):
    balance_id = models.CharField(max_length=320, unique=True)
    item_code = models.CharField(max_length=100)
    warehouse = models.CharField(max_length=100)
    location = models.CharField(max_length=100)
    current_qty = _qty_field(default=0)
    average_cost = _money_field(default=0)
    inventory_value = models.DecimalField(max_digits=24, decimal_places=2, default=0)
    safety_stock = _qty_field(default=0)
    reorder_point = _qty_field(default=0)
    alert_flag = models.CharField(
        max_length=20,
        choices=AlertFlagChoice.choices,
        default=AlertFlagChoice.OUT_OF_STOCK,
    )
    last_transaction_date = models.DateField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "stockline_balances"
        ordering = ["item_code", "warehouse", "location"]
        constraints = [
            models.UniqueConstraint(
                fields=("item_code", "warehouse", "location"),
                name="uq_balance_key",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.balance_id}: {self.current_qty}"


# ══════════════════════════════════════════════════════════════
# PROJECTION
# ══════════════════════════════════════════════════════════════

class ProjectionRecord(models.Model):
    summary_id = models.CharField(max_length=330, unique=True)
    item_code = models.CharField(max_length=100)
    warehouse = models.CharField(max_length=100)
    location = models.CharField(max_length=100)
    date = models.DateField()
    opening_qty = _qty_field()
    received_qty = _qty_field()
    issued_qty = _qty_field()
    ending_qty = _qty_field()
    planned_received_qty = _qty_field()
    planned_issued_qty = _qty_field()
    projected_ending_qty = _qty_field()
    alert_flag = models.CharField(
        max_length=20,
        choices=AlertFlagChoice.choices,
        default=AlertFlagChoice.NORMAL,
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "stockline_projection"
        ordering = ["item_code", "warehouse", "location", "date"]
        constraints = [
            models.UniqueConstraint(
                fields=("item_code", "warehouse", "location", "date"),
                name="uq_projection_key_date",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.summary_id}: {self.projected_ending_qty}"


# ══════════════════════════════════════════════════════════════
# APPLIED TRANSACTIONS
# ══════════════════════════════════════════════════════════════

class AppliedTransactionRecord(models.Model):
    """
    A confirmed transaction that has moved a balance.

    Written in the same database transaction as the balance row, so a
    redelivered trigger finds its id here and is not applied twice.
    """

    transaction_id = models.CharField(max_length=100, unique=True)
    balance_id = models.CharField(max_length=320, db_index=True)
    applied_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "stockline_applied_transactions"
        ordering = ["applied_at", "transaction_id"]

    def __str__(self) -> str:
        return f"{self.transaction_id} → {self.balance_id}"
