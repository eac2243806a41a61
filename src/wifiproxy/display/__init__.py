"""Rich display helpers."""
