"""
Core modules for Pool Club Billing.

This package contains the rate policy, the session billing calculation,
the table board and the front desk operations built on them.
"""
