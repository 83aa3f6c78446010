"""Ledger service layer used by the API views and management commands."""
