"""REST API for package pricing, quote linking and version history."""
