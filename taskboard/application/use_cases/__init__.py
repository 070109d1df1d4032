"""Use cases (application services orchestrating repositories and ports)."""
