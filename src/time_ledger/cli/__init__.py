"""Command-line interface for Time Ledger."""
