"""Cycle advancement."""
