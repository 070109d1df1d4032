"""Shared utilities and telemetry helpers (no domain logic)."""
