"""Likes, passes and mutual matches."""
