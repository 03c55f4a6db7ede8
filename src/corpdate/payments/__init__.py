"""Payment gateway orders, verification and webhooks."""
