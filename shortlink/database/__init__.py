"""Storage layer for URL mappings."""

from .base import MappingStoreBase
from .factory import create_store
from .memory import InMemoryMappingStore
from .models import MappingAggregate, URLMapping

__all__ = [
    "MappingStoreBase",
    "InMemoryMappingStore",
    "MappingAggregate",
    "URLMapping",
    "create_store",
]
