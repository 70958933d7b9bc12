"""
Storage Module

ChromaDB client management and the captured-sources repository.
"""

from .chromadb import get_chroma_client, get_or_create_collection
from .sources import ChromaSourcesRepository, SourcesRepository

__all__ = [
    "get_chroma_client",
    "get_or_create_collection",
    "ChromaSourcesRepository",
    "SourcesRepository",
]
