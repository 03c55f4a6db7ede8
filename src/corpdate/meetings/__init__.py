"""Dinner meetings between matched users."""
