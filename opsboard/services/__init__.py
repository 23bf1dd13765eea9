"""Services for Opsboard."""
