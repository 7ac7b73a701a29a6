"""Pydantic schemas for request bodies accepted by the gateway."""
