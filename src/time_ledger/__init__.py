"""Time Ledger - project time tracking with quarter-hour billing."""

__version__ = "0.1.0"
