"""Ports (abstract interfaces) implemented by the adapters package."""
