"""Configuration loading for Pool Club Billing."""
