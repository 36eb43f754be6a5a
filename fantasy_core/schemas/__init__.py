"""Pydantic schemas and rule constants."""
