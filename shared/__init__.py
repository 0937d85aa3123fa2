"""Shared helpers used across the durable queue packages."""
