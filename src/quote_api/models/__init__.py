"""API-specific request/response models.

Domain models (Package, Quote, PriceResult, ...) live in quote_engine.models
and are reused here as response models where they fit.

Modules:
- common: Shared request and response wrappers
- pricing: Price resolution request
- packages: Package catalog requests
- quotes: Quote linking, recalculation and status requests
"""

__all__: list[str] = []
