"""
Stockline Django persistence adapter.
Django ORM implementation of the inventory store contracts.
"""
