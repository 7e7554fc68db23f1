"""Shared pytest plugins."""
