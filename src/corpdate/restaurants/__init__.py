"""Restaurant catalogue."""
