"""Growth goals."""
