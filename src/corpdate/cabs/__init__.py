"""Cab bookings to meetings and ride estimates."""
