"""Concrete adapters implementing the ports in `conceptual.interfaces`."""
