"""Notification records and pub/sub fan-out."""
