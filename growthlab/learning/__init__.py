"""Post-experiment recommendations."""
