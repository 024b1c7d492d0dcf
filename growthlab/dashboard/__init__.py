"""Home page read model."""
