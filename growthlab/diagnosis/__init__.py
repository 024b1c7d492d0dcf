"""Structured diagnosis of free-text context."""
