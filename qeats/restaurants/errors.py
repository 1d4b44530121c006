from __future__ import annotations


class StoreUnavailableError(RuntimeError):
    """The restaurant store could not be read; no result can be produced."""


class CacheTransportError(RuntimeError):
    """The cache transport failed a get or set; callers fall back to the store."""
