from .catalog_listing import CatalogListingUseCase
from .resolve_stream import ResolveStreamUseCase

__all__ = ["CatalogListingUseCase", "ResolveStreamUseCase"]
