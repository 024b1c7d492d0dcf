"""Experiment generation, lifecycle and results."""
