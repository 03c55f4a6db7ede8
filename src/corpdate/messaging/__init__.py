"""Direct messages between mutual matches."""
