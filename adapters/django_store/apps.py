"""
Stockline — Django Store App Configuration
============================================
Persistent transactions, balances and projection series.

This app:
- Stores transaction records as received from the record API
- Stores one balance row per location key
- Stores one projection row per (location key, date)

This app does NOT:
- Compute balances or projections (engines/inventory does)
- Decide when reconciliation runs
"""

from django.apps import AppConfig


class DjangoStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "adapters.django_store"
    label = "stockline_store"
    verbose_name = "Stockline Inventory Store"
