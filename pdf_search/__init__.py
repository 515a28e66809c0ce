"""Index PDFs into a Chroma-style vector store and search them by meaning."""

__version__ = "0.4.0"
