from .cache import CachePort
from .catalog import CatalogPort, EmbedLinkPort, ServerDiscoveryPort
from .key_resolver import KeyResolverPort
from .session_negotiator import SessionNegotiatorPort
from .stream_result_repository import StreamResultRepository

__all__ = [
    "CachePort",
    "CatalogPort",
    "EmbedLinkPort",
    "KeyResolverPort",
    "ServerDiscoveryPort",
    "SessionNegotiatorPort",
    "StreamResultRepository",
]
