"""Command line interface for Pool Club Billing."""
