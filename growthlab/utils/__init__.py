"""Utility functions for growthlab."""

from growthlab.utils.numbers import lenient_number, parse_optional_number

__all__ = ["lenient_number", "parse_optional_number"]
