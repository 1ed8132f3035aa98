"""API schemas."""
