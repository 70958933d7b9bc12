"""
ChromaDB Client Management

Initialization and collection management for ChromaDB.
"""

import os
from typing import Optional

import chromadb
from chromadb.config import Settings

from codecapture.configs import DB_PATH


def get_chroma_client(persist_dir: Optional[str] = None) -> chromadb.PersistentClient:
    """
    Initialize persistent ChromaDB client.

    Args:
        persist_dir: Directory for persistence (defaults to DB_PATH)

    Returns:
        ChromaDB PersistentClient instance
    """
    path = persist_dir or DB_PATH
    path = os.path.expanduser(path)
    os.makedirs(path, exist_ok=True)
    return chromadb.PersistentClient(
        path=path,
        settings=Settings(anonymized_telemetry=False),
    )


def get_or_create_collection(
    client: chromadb.PersistentClient,
    name: str,
) -> chromadb.Collection:
    """
    Get or create a collection with cosine similarity.

    Embeddings are always supplied by the caller, so no embedding function
    is attached.

    Args:
        client: ChromaDB client
        name: Collection name

    Returns:
        ChromaDB Collection
    """
    return client.get_or_create_collection(
        name=name,
        metadata={"hnsw:space": "cosine"},
        embedding_function=None,
    )
