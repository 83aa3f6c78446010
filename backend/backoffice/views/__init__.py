"""API views for the back-office ledger."""
