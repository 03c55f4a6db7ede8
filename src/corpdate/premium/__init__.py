"""Paid unlocks of another member's contact details."""
