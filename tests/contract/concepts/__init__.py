"""Behaviour of the shipped concepts on every store backend."""
