"""Authentication helpers for the API."""
