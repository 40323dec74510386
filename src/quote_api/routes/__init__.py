"""API routes package.

Routers are organized by domain:

- pricing: Price resolution against a stored package
- packages: Package catalog, version history and comparisons
- quotes: Quote linking, recalculation, status and version history
"""
