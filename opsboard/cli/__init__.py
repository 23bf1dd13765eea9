"""Command-line tools for Opsboard."""
