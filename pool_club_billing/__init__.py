"""
Pool Club Billing.

Front desk billing for pool-table rentals.
"""

__version__ = "0.1.0"
