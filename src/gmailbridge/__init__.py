"""gmailbridge: a small HTTP bridge for a handful of Gmail operations."""

__version__ = "0.1.0"
