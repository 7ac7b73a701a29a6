"""Domain entities and their serialization rules."""

from .whisky import UNASSIGNED_ID, Whisky

__all__ = ["UNASSIGNED_ID", "Whisky"]
