"""Lineage knowledge base queries."""

from .client import LineageClient
from .index import index_images
from .lineage import lineage_store_images
from .repository import find_repository

__all__ = [
    "LineageClient",
    "find_repository",
    "index_images",
    "lineage_store_images",
]
