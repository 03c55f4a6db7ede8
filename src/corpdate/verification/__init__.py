"""Phone number verification by one-time password."""
