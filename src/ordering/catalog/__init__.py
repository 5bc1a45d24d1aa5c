"""Catalog lookup factory.

Provides get_catalog() / set_catalog() to swap implementations:
- InMemoryCatalog for development and testing
- HttpCatalog when CATALOG_BASE_URL is configured
"""

from ordering.catalog.memory_adapter import InMemoryCatalog
from ordering.catalog.port import CatalogLookup

_current_catalog: CatalogLookup | None = None


def get_catalog() -> CatalogLookup:
    """Return the current catalog. Defaults to the HTTP catalog when configured."""
    global _current_catalog
    if _current_catalog is None:
        from ordering.config import get_settings

        settings = get_settings()
        if settings.catalog_base_url:
            from ordering.catalog.http_adapter import HttpCatalog

            _current_catalog = HttpCatalog(settings.catalog_base_url, timeout=settings.catalog_timeout_seconds)
        else:
            _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: CatalogLookup) -> None:
    """Override the active catalog (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the default catalog."""
    global _current_catalog
    _current_catalog = None
