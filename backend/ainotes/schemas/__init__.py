"""Pydantic models for note rows, identity payloads and API bodies."""
