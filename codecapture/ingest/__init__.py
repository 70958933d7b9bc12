"""
Ingest Module

File discovery, canonical type classification and text chunking. The
capture orchestrator lives in codecapture.ingest.engine.
"""

from .chunker import chunk_text_by_token_limit, estimate_tokens
from .file_types import CanonicalFileType, classify, get_file_extension
from .walker import find_files_sorted_by_size, walk_codebase

__all__ = [
    "chunk_text_by_token_limit",
    "estimate_tokens",
    "CanonicalFileType",
    "classify",
    "get_file_extension",
    "find_files_sorted_by_size",
    "walk_codebase",
]
