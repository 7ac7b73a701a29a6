"""Whisky Store: a small CRUD gateway over interchangeable storage backends."""

__version__ = "1.0.0"
