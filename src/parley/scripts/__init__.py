"""Operational scripts for the Parley service."""
