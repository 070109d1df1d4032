"""Adapters for external services (blob storage)."""
