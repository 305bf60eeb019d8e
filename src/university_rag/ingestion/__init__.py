"""
Ingestion — text extraction, chunking, and embedding into the vector store.

This module is responsible for turning an uploaded document (PDF, plain
text, or pasted text) into embedded word-window chunks stored in a vector
database, one chunk at a time so that a single bad chunk never discards
the whole document.
"""
