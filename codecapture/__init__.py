"""
CodeCapture - LLM-assisted capture of a codebase into a vector store.

Walks a source tree, summarizes each file with a schema-governed LLM prompt,
embeds the content and summary, and persists one record per file in ChromaDB.
"""

__version__ = "1.0.0"
