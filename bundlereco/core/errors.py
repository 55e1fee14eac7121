# bundlereco/core/errors.py
"""
Error taxonomy of the recommendation engine.

- DataSourceError: catalog/order fetch failed. Fatal for a run.
- ProviderError: generative call failed (missing key, transport, timeout, non-2xx).
  Recovered by the heuristic fallback, never leaves the pipeline.
- ValidationError: generative output could not be validated. Recovered like ProviderError.
- PersistenceError: a single record write failed. Logged, the run continues.
- GenerationError: the only error raised by generate_recommendations().
"""


class BundleRecoError(Exception):
    """Base class for all domain errors."""


class DataSourceError(BundleRecoError):
    pass


class ProviderError(BundleRecoError):
    pass


class ValidationError(BundleRecoError, ValueError):
    pass


class PersistenceError(BundleRecoError):
    pass


class GenerationError(BundleRecoError):
    def __init__(self, message: str, *, shop_domain: str | None = None):
        super().__init__(message)
        self.shop_domain = shop_domain
