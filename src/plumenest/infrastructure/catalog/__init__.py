from .client import HttpxCatalogClient

__all__ = ["HttpxCatalogClient"]
